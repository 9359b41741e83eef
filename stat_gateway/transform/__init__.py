"""Per-sport transforms from raw provider JSON into canonical models."""
