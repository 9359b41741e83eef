"""Postgres persistence for players, game logs, season summaries and snapshots."""
