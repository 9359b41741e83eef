"""HTTP client for the upstream sports data provider.

Every outbound call is admitted by the QuotaTracker first and its outcome is
fed back into the tracker's backoff state. Responses are returned as raw JSON;
shaping them into canonical models is the transform layer's job.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import httpx

from ..config import ProviderConfig, settings
from ..config_sports import get_league_config
from ..errors import NotFound, ProviderStructuralError, ProviderUnavailable, QuotaExceeded
from ..logging import logger
from .quota import QuotaTracker

# More errors than this since the last success marks the provider degraded
DEGRADED_ERROR_THRESHOLD = 5


class ProviderClient:
    def __init__(
        self,
        client: httpx.Client | None = None,
        quota: QuotaTracker | None = None,
        config: ProviderConfig | None = None,
    ) -> None:
        self.config = config or settings.provider_config
        self.client = client or httpx.Client(
            headers={"User-Agent": self.config.user_agent},
            timeout=self.config.request_timeout_seconds,
            follow_redirects=True,
        )
        self.quota = quota or QuotaTracker()
        self._errors_since_success = 0

    def close(self) -> None:
        self.client.close()

    # -------------------------------------------------------------------------
    # Core request path
    # -------------------------------------------------------------------------
    def _request_json(self, bucket: str, url: str, params: dict[str, Any] | None = None) -> Any:
        decision = self.quota.try_acquire(bucket)
        if not decision.allowed:
            logger.warning(
                "provider_request_blocked",
                bucket=bucket,
                reason=decision.reason,
                retry_after=decision.retry_after,
            )
            raise QuotaExceeded(
                f"Provider quota exhausted for bucket '{bucket}' ({decision.reason})",
                bucket=bucket,
                reason=decision.reason,
                retry_after_seconds=decision.retry_after,
            )

        try:
            response = self.client.get(url, params=params)
        except httpx.TimeoutException as exc:
            self._record_failure(0, is_timeout=True)
            logger.warning("provider_request_timeout", bucket=bucket, url=url)
            raise ProviderUnavailable(f"Provider request timed out: {url}", is_timeout=True) from exc
        except httpx.TransportError as exc:
            self._record_failure(0, is_timeout=True)
            logger.warning("provider_transport_error", bucket=bucket, url=url, error=str(exc))
            raise ProviderUnavailable(f"Provider unreachable: {exc}", is_timeout=True) from exc

        status = response.status_code
        if status >= 400:
            self._record_failure(status)
            logger.warning(
                "provider_http_error",
                bucket=bucket,
                url=url,
                status=status,
                body=response.text[:200] if response.text else "",
            )
            if status == 404:
                raise NotFound(f"Provider resource not found: {url}")
            if status in (429, 403) or status >= 500:
                raise ProviderUnavailable(
                    f"Provider returned HTTP {status}",
                    upstream_status=status,
                )
            raise ProviderStructuralError(f"Provider rejected request with HTTP {status}")

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("provider_invalid_json", bucket=bucket, url=url, status=status)
            raise ProviderStructuralError(f"Provider returned a non-JSON body for {url}") from exc

        self.quota.record_success()
        self._errors_since_success = 0
        logger.debug("provider_request_ok", bucket=bucket, url=url, status=status)
        return payload

    def _record_failure(self, status: int, is_timeout: bool = False) -> None:
        self.quota.record_error(status, is_timeout=is_timeout)
        if is_timeout or status in (429, 403) or status >= 500:
            self._errors_since_success += 1

    def _site_url(self, league: str, resource: str) -> str:
        path = get_league_config(league).provider_path
        return f"{self.config.site_base_url}/{path}/{resource}"

    def _web_url(self, league: str, resource: str) -> str:
        path = get_league_config(league).provider_path
        return f"{self.config.web_base_url}/{path}/{resource}"

    def _athlete_url(self, league: str, athlete_id: str, suffix: str = "") -> str:
        path = get_league_config(league).provider_path
        url = f"{self.config.athlete_base_url}/{path}/athletes/{athlete_id}"
        return f"{url}/{suffix}" if suffix else url

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------
    def fetch_scoreboard(self, league: str, day: date) -> dict:
        return self._request_json(
            "scoreboard",
            self._site_url(league, "scoreboard"),
            params={"dates": day.strftime("%Y%m%d")},
        )

    def fetch_summary(self, league: str, event_id: str) -> dict:
        return self._request_json(
            "game_summary",
            self._web_url(league, "summary"),
            params={"event": event_id},
        )

    def fetch_golf_leaderboard(self, league: str, event_id: str) -> dict:
        return self._request_json(
            "game_summary",
            self._web_url(league, "leaderboard"),
            params={"event": event_id},
        )

    def fetch_golf_calendar(self, league: str) -> dict:
        return self._request_json(
            "scoreboard",
            self._site_url(league, "scoreboard"),
            params={"calendar": "true"},
        )

    def fetch_athlete(self, league: str, athlete_id: str) -> dict:
        return self._request_json("athlete", self._athlete_url(league, athlete_id))

    def fetch_athlete_stats(self, league: str, athlete_id: str) -> dict:
        return self._request_json("athlete", self._athlete_url(league, athlete_id, "stats"))

    # -------------------------------------------------------------------------
    # Visibility
    # -------------------------------------------------------------------------
    def health(self) -> dict:
        in_backoff = self.quota.in_backoff
        daily_remaining = self.quota.daily_remaining
        degraded = (
            in_backoff
            or daily_remaining <= 0
            or self._errors_since_success > DEGRADED_ERROR_THRESHOLD
        )
        return {
            "status": "degraded" if degraded else "healthy",
            "in_backoff": in_backoff,
            "daily_remaining": daily_remaining,
            "errors_since_success": self._errors_since_success,
        }
