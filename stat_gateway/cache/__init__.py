"""Redis-backed response caching and TTL policy."""
