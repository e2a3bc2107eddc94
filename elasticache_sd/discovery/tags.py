"""Per-cluster resource tag lookup with label-safe key sanitization."""

from __future__ import annotations

import logging

from ..exceptions import ProviderError
from . import InventoryProvider
from .labels import sanitize_label_name

logger = logging.getLogger(__name__)


def cluster_arn(region: str, account_id: str, cluster_id: str) -> str:
    return f"arn:aws:elasticache:{region}:{account_id}:cluster:{cluster_id}"


class TagEnricher:
    """Fetches cluster tags; a failed lookup yields no tags rather than an error."""

    def __init__(self, provider: InventoryProvider, account_id: str, region: str):
        self._provider = provider
        self._account_id = account_id
        self._region = region

    def fetch_tags(self, cluster_id: str) -> dict[str, str]:
        """Return ``{sanitized_key: value}`` for a cluster, or {} if listing fails."""
        arn = cluster_arn(self._region, self._account_id, cluster_id)
        try:
            tag_list = self._provider.list_tags(self._region, arn)
        except ProviderError as exc:
            logger.error(
                "Could not list tags for cache cluster %s: %s", cluster_id, exc,
                extra={"cluster_id": cluster_id, "resource_arn": arn},
            )
            return {}

        tags: dict[str, str] = {}
        for tag in tag_list:
            key = tag.get("Key")
            value = tag.get("Value")
            if key is None or value is None:
                continue
            tags[sanitize_label_name(key)] = value
        return tags
