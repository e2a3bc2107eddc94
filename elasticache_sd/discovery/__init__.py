"""ElastiCache discovery: the provider capability Protocol the loop is written against."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class InventoryProvider(Protocol):
    """Read-only capabilities the discovery loop needs from a cloud provider.

    Implementations translate SDK failures into ``ProviderError``.
    """

    def get_identity(self) -> str:
        """Return the caller's account ID."""
        ...

    def get_region(self) -> str:
        """Return the region this process operates in."""
        ...

    def list_inventory(self, region: str) -> Iterable[list[dict[str, Any]]]:
        """Yield pages of cache cluster records, each including its nodes."""
        ...

    def list_tags(self, region: str, resource_arn: str) -> list[dict[str, Any]]:
        """Return the ``[{"Key": ..., "Value": ...}]`` tag list of a resource."""
        ...
