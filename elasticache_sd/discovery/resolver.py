"""One-shot resolution of the caller's account ID and operating region."""

from __future__ import annotations

import logging
import threading

from ..config import ResolverConfig
from ..exceptions import (
    DiscoveryError,
    IdentityResolutionError,
    RegionResolutionError,
    ResolutionCancelled,
)
from . import InventoryProvider

logger = logging.getLogger(__name__)


class Resolver:
    """Resolves ``(account_id, region)`` once at startup.

    Identity failures are fatal. Region lookups are retried with capped
    exponential backoff until they succeed, the attempt budget runs out, or
    ``stop`` is set.
    """

    def __init__(
        self,
        provider: InventoryProvider,
        config: ResolverConfig,
        stop: threading.Event | None = None,
        region_override: str = "",
    ):
        self._provider = provider
        self._config = config
        self._stop = stop or threading.Event()
        self._region_override = region_override

    def resolve(self) -> tuple[str, str]:
        account_id = self._resolve_account()
        region = self._resolve_region()
        logger.info(
            "Resolved account %s in region %s", account_id, region,
            extra={"account_id": account_id, "region": region},
        )
        return account_id, region

    def _resolve_account(self) -> str:
        try:
            account_id = self._provider.get_identity()
        except DiscoveryError as exc:
            raise IdentityResolutionError(f"Could not resolve account ID: {exc}") from exc
        if not account_id:
            raise IdentityResolutionError("Identity call returned an empty account ID")
        return account_id

    def _resolve_region(self) -> str:
        if self._region_override:
            return self._region_override

        attempt = 0
        while True:
            attempt += 1
            try:
                region = self._provider.get_region()
                if region:
                    return region
                logger.error("Region lookup returned an empty region", extra={"attempt": attempt})
            except DiscoveryError as exc:
                logger.error("Could not get region: %s", exc, extra={"attempt": attempt})

            max_attempts = self._config.max_attempts
            if max_attempts and attempt >= max_attempts:
                raise RegionResolutionError(f"Region still unresolved after {attempt} attempts")

            delay = self.backoff_delay(attempt)
            logger.debug("Retrying region lookup in %.1fs", delay)
            if self._stop.wait(delay):
                raise ResolutionCancelled("Shutdown requested during region resolution")

    def backoff_delay(self, attempt: int) -> float:
        """Delay after the given (1-based) failed attempt."""
        return min(
            self._config.retry_delay_seconds * (2 ** min(attempt - 1, 30)),
            self._config.max_backoff_seconds,
        )
