"""Periodic ElastiCache discovery loop that publishes full target group snapshots."""

from __future__ import annotations

import dataclasses
import logging
import queue
import threading
import time

from ..config import DiscoveryConfig, ResolverConfig
from ..exceptions import ProviderError
from . import InventoryProvider
from .labels import ADDRESS_LABEL, parse_node, record_labels
from .models import TargetGroup
from .resolver import Resolver
from .tags import TagEnricher
from .ticker import Ticker

logger = logging.getLogger(__name__)

# How often a blocked publish re-checks the stop event
_PUT_POLL_SECONDS = 0.5


class ElastiCacheDiscovery:
    """Discover -> label -> enrich -> publish, once per refresh interval.

    Account and region are resolved once, at construction. Each tick pulls the
    whole inventory and sends one complete snapshot downstream. Listing
    failures abandon the tick and retry after a full interval. Tag lookup
    failures only drop the tags of the affected cluster.
    """

    def __init__(
        self,
        provider: InventoryProvider,
        config: DiscoveryConfig,
        resolver_config: ResolverConfig | None = None,
        stop: threading.Event | None = None,
        region: str = "",
    ):
        self._provider = provider
        self._interval = config.refresh_interval_seconds

        resolver = Resolver(provider, resolver_config or ResolverConfig(), stop, region_override=region)
        self.account_id, self.region = resolver.resolve()
        self._tag_enricher = TagEnricher(provider, self.account_id, self.region)

    @property
    def refresh_interval(self) -> int:
        return self._interval

    def refresh(self) -> list[TargetGroup]:
        """Run a single tick synchronously. Raises ProviderError on listing failure."""
        return self._collect(threading.Event())

    def run(self, stop: threading.Event, out: queue.Queue) -> None:
        """Publish snapshots onto ``out`` until ``stop`` is set.

        Provider failures are logged and never raised.
        """
        ticker = Ticker(self._interval)
        logger.info("Discovery loop started, refreshing every %ds", self._interval)

        while not stop.is_set():
            start = time.monotonic()
            try:
                snapshot = self._collect(stop)
            except ProviderError as exc:
                logger.error(
                    "Could not describe cache clusters: %s", exc,
                    extra={"region": self.region},
                )
                if stop.wait(self._interval):
                    break
                continue

            # a tick cut short by stop is never published
            if stop.is_set() or not self._publish(snapshot, stop, out):
                break

            logger.info(
                "Published snapshot",
                extra={
                    "target_groups": len(snapshot),
                    "elapsed_seconds": round(time.monotonic() - start, 2),
                },
            )
            if not ticker.wait(stop):
                break

        logger.info("Discovery loop stopped")

    def _collect(self, stop: threading.Event) -> list[TargetGroup]:
        """Traverse every inventory page, stopping early once ``stop`` is set."""
        snapshot: list[TargetGroup] = []
        seen: set[str] = set()

        for page in self._provider.list_inventory(self.region):
            if stop.is_set():
                break
            for cluster in page:
                tags: dict[str, str] | None = None
                for node in cluster.get("CacheNodes") or []:
                    record = parse_node(cluster, node)
                    if record is None:
                        logger.debug(
                            "Skipping cache node %s, endpoint not ready", node.get("CacheNodeId"),
                            extra={"cluster_id": cluster.get("CacheClusterId")},
                        )
                        continue

                    if record.source in seen:
                        logger.warning(
                            "Duplicate target source %s, keeping first occurrence", record.source,
                            extra={"cluster_id": record.cluster_id, "node_id": record.node_id},
                        )
                        continue
                    seen.add(record.source)

                    if tags is None:
                        tags = self._tag_enricher.fetch_tags(record.cluster_id)
                    record = dataclasses.replace(record, tags=tags)

                    snapshot.append(TargetGroup(
                        source=record.source,
                        targets=[{ADDRESS_LABEL: record.address}],
                        labels=record_labels(record),
                    ))

        return snapshot

    @staticmethod
    def _publish(snapshot: list[TargetGroup], stop: threading.Event, out: queue.Queue) -> bool:
        """Blocking put that gives up only when ``stop`` is set."""
        while not stop.is_set():
            try:
                out.put(snapshot, timeout=_PUT_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False
