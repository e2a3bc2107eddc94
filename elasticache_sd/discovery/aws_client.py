"""AWS boto3 adapter implementing the InventoryProvider capabilities for ElastiCache."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from botocore.utils import InstanceMetadataRegionFetcher

from ..config import AWSConfig
from ..exceptions import ProviderError

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"


class AWSProvider:
    """Read-only access to STS, instance metadata and the ElastiCache API."""

    def __init__(self, aws_config: AWSConfig):
        session_kwargs: dict[str, Any] = {}
        if aws_config.region:
            session_kwargs["region_name"] = aws_config.region
        if aws_config.credential_profile:
            session_kwargs["profile_name"] = aws_config.credential_profile

        try:
            self._session = boto3.Session(**session_kwargs)
        except BotoCoreError as exc:
            # e.g. ProfileNotFound for an unknown credential_profile
            raise ProviderError(f"Could not create AWS session: {exc}", operation="Session") from exc
        self._elasticache: Any = None
        self._elasticache_region: str | None = None

    # ── Identity / region ───────────────────────────────────────────

    def get_identity(self) -> str:
        """Account ID of the calling credentials, via STS GetCallerIdentity."""
        try:
            sts = self._session.client("sts", region_name=self._session.region_name or _env_region())
            response = sts.get_caller_identity()
        except (BotoCoreError, ClientError) as exc:
            raise ProviderError(f"GetCallerIdentity failed: {exc}", operation="GetCallerIdentity") from exc
        return response["Account"]

    def get_region(self) -> str:
        """Region from instance metadata, else $AWS_REGION, else us-east-1."""
        try:
            region = InstanceMetadataRegionFetcher().retrieve_region()
        except BotoCoreError:
            logger.debug("Instance metadata region lookup failed", exc_info=True)
            region = None

        if region:
            return region
        logger.info("Instance metadata unavailable, falling back to environment region")
        return _env_region()

    # ── ElastiCache ─────────────────────────────────────────────────

    def list_inventory(self, region: str) -> Iterator[list[dict[str, Any]]]:
        """Yield each DescribeCacheClusters page's cluster list, nodes included.

        A fresh client is built per listing so rotated credentials are picked up.
        """
        try:
            client = self._client_for(region, fresh=True)
            paginator = client.get_paginator("describe_cache_clusters")
            for page in paginator.paginate(ShowCacheNodeInfo=True):
                yield page.get("CacheClusters", [])
        except (BotoCoreError, ClientError) as exc:
            raise ProviderError(
                f"DescribeCacheClusters failed: {exc}", operation="DescribeCacheClusters",
            ) from exc

    def list_tags(self, region: str, resource_arn: str) -> list[dict[str, Any]]:
        try:
            response = self._client_for(region).list_tags_for_resource(ResourceName=resource_arn)
        except (BotoCoreError, ClientError) as exc:
            raise ProviderError(
                f"ListTagsForResource failed for {resource_arn}: {exc}", operation="ListTagsForResource",
            ) from exc
        return response.get("TagList", [])

    def _client_for(self, region: str, fresh: bool = False) -> Any:
        if fresh or self._elasticache is None or self._elasticache_region != region:
            self._elasticache = self._session.client("elasticache", region_name=region)
            self._elasticache_region = region
        return self._elasticache


def _env_region() -> str:
    return os.environ.get("AWS_REGION") or DEFAULT_REGION
