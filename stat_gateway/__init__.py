"""Quota-aware sports stats ingestion gateway."""
