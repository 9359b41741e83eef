"""Quota tracking for provider requests.

One QuotaTracker is owned by each ProviderClient. It layers:

- a global sliding window (requests per minute across all buckets)
- per-bucket sliding windows and daily caps
- a global daily soft cap (unprotected buckets stop) and hard cap
- adaptive backoff driven by upstream errors

Check-then-record happens under a single lock so concurrent callers can
never both take the last slot.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from ..config import BucketLimits, QuotaConfig, settings
from ..logging import logger
from ..utils.datetime_utils import now_utc


@dataclass
class QuotaDecision:
    allowed: bool
    reason: str | None = None
    retry_after: float | None = None  # seconds


@dataclass
class _BucketState:
    limits: BucketLimits
    window: deque[datetime] = field(default_factory=deque)
    daily_used: int = 0


class QuotaTracker:
    """In-memory, thread-safe request budget for a single process."""

    def __init__(
        self,
        config: QuotaConfig | None = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.config = config or settings.quota_config
        self._clock = clock
        self._lock = threading.Lock()
        self.window = timedelta(seconds=self.config.window_seconds)

        self._global_window: deque[datetime] = deque()
        self._buckets: dict[str, _BucketState] = {
            name: _BucketState(limits=limits) for name, limits in self.config.buckets.items()
        }
        self._daily_used = 0
        self._day: date = clock().date()
        self._warned_today = False

        self._blocked_until: datetime | None = None
        self._current_backoff_seconds: float = 0.0
        self._consecutive_errors = 0
        self._consecutive_successes = 0
        self._last_error_at: datetime | None = None

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def can_make_request(self, bucket: str) -> QuotaDecision:
        with self._lock:
            return self._check(bucket, self._clock())

    def record_request(self, bucket: str) -> None:
        with self._lock:
            self._record(bucket, self._clock())

    def try_acquire(self, bucket: str) -> QuotaDecision:
        """Atomically check admission and, if allowed, record the request."""
        with self._lock:
            now = self._clock()
            decision = self._check(bucket, now)
            if decision.allowed:
                self._record(bucket, now)
            return decision

    def _bucket(self, bucket: str) -> _BucketState:
        try:
            return self._buckets[bucket]
        except KeyError:
            valid = ", ".join(self._buckets)
            raise ValueError(f"Unknown quota bucket '{bucket}'. Valid buckets: {valid}") from None

    def _check(self, bucket: str, now: datetime) -> QuotaDecision:
        state = self._bucket(bucket)
        self._roll_day(now)
        self._prune(now)
        self._expire_backoff(now)

        if self._blocked_until is not None and now < self._blocked_until:
            return QuotaDecision(
                False,
                reason="backoff",
                retry_after=(self._blocked_until - now).total_seconds(),
            )

        if len(self._global_window) >= self.config.global_per_minute:
            return QuotaDecision(
                False,
                reason="global_rate",
                retry_after=self._window_retry_after(self._global_window, now),
            )

        if self._daily_used >= self.config.daily_hard_cap:
            return QuotaDecision(False, reason="daily_hard_cap")

        if len(state.window) >= state.limits.per_minute:
            return QuotaDecision(
                False,
                reason="bucket_rate",
                retry_after=self._window_retry_after(state.window, now),
            )

        if state.daily_used >= state.limits.daily:
            return QuotaDecision(False, reason="bucket_daily")

        if self._daily_used >= self.config.daily_soft_cap and not state.limits.protected:
            return QuotaDecision(False, reason="daily_soft_cap")

        return QuotaDecision(True)

    def _record(self, bucket: str, now: datetime) -> None:
        state = self._bucket(bucket)
        self._roll_day(now)
        self._global_window.append(now)
        state.window.append(now)
        state.daily_used += 1
        self._daily_used += 1

        if self._daily_used >= self.config.warning_threshold and not self._warned_today:
            self._warned_today = True
            logger.warning(
                "quota_daily_warning",
                used=self._daily_used,
                soft_cap=self.config.daily_soft_cap,
                hard_cap=self.config.daily_hard_cap,
            )

    def _window_retry_after(self, window: deque[datetime], now: datetime) -> float:
        oldest = window[0]
        return max((oldest + self.window - now).total_seconds(), 0.1)

    def _prune(self, now: datetime) -> None:
        cutoff = now - self.window
        while self._global_window and self._global_window[0] <= cutoff:
            self._global_window.popleft()
        for state in self._buckets.values():
            while state.window and state.window[0] <= cutoff:
                state.window.popleft()

    def _roll_day(self, now: datetime) -> None:
        today = now.date()
        if today == self._day:
            return
        logger.info(
            "quota_daily_reset",
            previous_day=self._day.isoformat(),
            new_day=today.isoformat(),
            previous_usage=self._daily_used,
        )
        self._day = today
        self._daily_used = 0
        self._warned_today = False
        for state in self._buckets.values():
            state.daily_used = 0

    # ------------------------------------------------------------------
    # Adaptive backoff
    # ------------------------------------------------------------------

    def record_success(self) -> None:
        with self._lock:
            self._consecutive_errors = 0
            self._consecutive_successes += 1
            if self._blocked_until is not None:
                logger.info("quota_backoff_cleared", reason="success")
                self._blocked_until = None
            if self._consecutive_successes >= self.config.backoff.successes_to_halve:
                if self._current_backoff_seconds > 0:
                    self._current_backoff_seconds = self._current_backoff_seconds / 2
                    logger.debug(
                        "quota_backoff_halved",
                        backoff_seconds=self._current_backoff_seconds,
                    )
                self._consecutive_successes = 0

    def record_error(self, status_code: int, is_timeout: bool = False) -> None:
        """Register an upstream failure.

        429/403 start a cooldown immediately. Timeouts and 5xx count toward
        the consecutive-error threshold. Other statuses are ignored.
        """
        backoff = self.config.backoff
        with self._lock:
            now = self._clock()
            if is_timeout:
                kind = "timeout"
            elif status_code in (429, 403):
                kind = str(status_code)
            elif status_code >= 500:
                kind = "5xx"
            else:
                return

            self._consecutive_successes = 0
            self._consecutive_errors += 1
            self._last_error_at = now

            immediate = kind in ("429", "403")
            if self._consecutive_errors >= backoff.consecutive_error_threshold:
                kind = "consecutive"
            elif not immediate:
                logger.debug(
                    "quota_error_recorded",
                    status_code=status_code,
                    is_timeout=is_timeout,
                    consecutive_errors=self._consecutive_errors,
                )
                return

            if self._current_backoff_seconds <= 0:
                self._current_backoff_seconds = float(backoff.initial_seconds[kind])
            else:
                self._current_backoff_seconds = min(
                    self._current_backoff_seconds * 2,
                    float(backoff.max_seconds[kind]),
                )
            self._blocked_until = now + timedelta(seconds=self._current_backoff_seconds)

            logger.warning(
                "quota_backoff_triggered",
                status_code=status_code,
                is_timeout=is_timeout,
                kind=kind,
                backoff_seconds=self._current_backoff_seconds,
                blocked_until=self._blocked_until.isoformat(),
                consecutive_errors=self._consecutive_errors,
            )

    def _expire_backoff(self, now: datetime) -> None:
        if self._blocked_until is not None and now >= self._blocked_until:
            logger.info("quota_backoff_expired")
            self._blocked_until = None

        quiet = timedelta(seconds=self.config.backoff.full_reset_after_seconds)
        if self._last_error_at is not None and now - self._last_error_at > quiet:
            self._consecutive_errors = 0
            self._current_backoff_seconds = 0.0
            self._last_error_at = None
            logger.debug("quota_error_state_reset")

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    @property
    def in_backoff(self) -> bool:
        with self._lock:
            now = self._clock()
            return self._blocked_until is not None and now < self._blocked_until

    @property
    def daily_remaining(self) -> int:
        with self._lock:
            self._roll_day(self._clock())
            return max(0, self.config.daily_soft_cap - self._daily_used)

    def status(self) -> dict:
        """Snapshot of budget and backoff state for operational visibility."""
        with self._lock:
            now = self._clock()
            self._roll_day(now)
            self._prune(now)
            self._expire_backoff(now)

            buckets = {
                name: {
                    "window_used": len(state.window),
                    "window_limit": state.limits.per_minute,
                    "daily_used": state.daily_used,
                    "daily_limit": state.limits.daily,
                    "daily_remaining": max(0, state.limits.daily - state.daily_used),
                    "protected": state.limits.protected,
                }
                for name, state in self._buckets.items()
            }
            active = self._blocked_until is not None and now < self._blocked_until
            return {
                "window": {
                    "used": len(self._global_window),
                    "capacity": self.config.global_per_minute,
                    "seconds": self.config.window_seconds,
                },
                "daily": {
                    "used": self._daily_used,
                    "soft_cap": self.config.daily_soft_cap,
                    "hard_cap": self.config.daily_hard_cap,
                    "remaining": max(0, self.config.daily_soft_cap - self._daily_used),
                },
                "buckets": buckets,
                "backoff": {
                    "active": active,
                    "until": self._blocked_until.isoformat() if active and self._blocked_until else None,
                    "current_seconds": self._current_backoff_seconds,
                    "consecutive_errors": self._consecutive_errors,
                },
                "day": self._day.isoformat(),
            }
