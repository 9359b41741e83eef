"""Quota-gated access to the upstream sports data provider."""

from .client import ProviderClient
from .dedup import RequestDeduplicator
from .quota import QuotaDecision, QuotaTracker

__all__ = ["ProviderClient", "QuotaDecision", "QuotaTracker", "RequestDeduplicator"]
