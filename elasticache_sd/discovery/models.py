"""Data models for discovered cache nodes and the target groups built from them."""

from __future__ import annotations

from dataclasses import dataclass, field


def join_host_port(host: str, port: int) -> str:
    """Combine host and port into ``host:port``, bracketing IPv6 literals."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


@dataclass(frozen=True)
class InstanceRecord:
    """One addressable cache node, read fresh from the inventory on every tick."""

    cluster_id: str
    node_id: str
    availability_zone: str
    status: str
    instance_type: str
    engine: str
    engine_version: str
    endpoint_address: str
    endpoint_port: int
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def address(self) -> str:
        return join_host_port(self.endpoint_address, self.endpoint_port)

    @property
    def source(self) -> str:
        """Snapshot-unique identifier: cluster ID immediately followed by node ID."""
        return self.cluster_id + self.node_id


@dataclass(frozen=True)
class TargetGroup:
    """The unit of discovery output: one target address plus its labels."""

    source: str
    targets: list[dict[str, str]]
    labels: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"source": self.source, "targets": list(self.targets), "labels": dict(self.labels)}
