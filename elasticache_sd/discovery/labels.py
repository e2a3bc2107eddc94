"""Normalizes ElastiCache cluster/node records into Prometheus-style label sets."""

from __future__ import annotations

import re
from typing import Any

from ..exceptions import RecordContractError
from .models import InstanceRecord

ADDRESS_LABEL = "__address__"
META_LABEL_PREFIX = "__meta_"

LABEL_PREFIX = META_LABEL_PREFIX + "elasticache_"
LABEL_AZ = LABEL_PREFIX + "availability_zone"
LABEL_CLUSTER_ID = LABEL_PREFIX + "cluster_id"
LABEL_NODE_ID = LABEL_PREFIX + "node_id"
LABEL_INSTANCE_STATE = LABEL_PREFIX + "instance_state"
LABEL_INSTANCE_TYPE = LABEL_PREFIX + "instance_type"
LABEL_ENGINE = LABEL_PREFIX + "engine"
LABEL_ENGINE_VERSION = LABEL_PREFIX + "engine_version"
LABEL_ENDPOINT_ADDRESS = LABEL_PREFIX + "endpoint_address"
LABEL_ENDPOINT_PORT = LABEL_PREFIX + "endpoint_port"
LABEL_TAG_PREFIX = LABEL_PREFIX + "tag_"

_INVALID_LABEL_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_label_name(name: str) -> str:
    """Replace every character outside ``[a-zA-Z0-9_]`` with an underscore.

    The result is always a fixed point: sanitizing it again returns it unchanged.
    Callers append it after ``tag_``, so a leading digit stays valid.
    """
    return _INVALID_LABEL_CHARS.sub("_", name)


def _require(record: dict[str, Any], key: str, owner: str) -> Any:
    value = record.get(key)
    if value is None:
        raise RecordContractError(f"{owner} is missing required field {key}", field_name=key)
    return value


def parse_node(cluster: dict[str, Any], node: dict[str, Any]) -> InstanceRecord | None:
    """Build an InstanceRecord from raw DescribeCacheClusters output.

    Returns None for a node whose endpoint address is not resolved yet.
    Raises RecordContractError when a ready node lacks a promised field.
    """
    endpoint = node.get("Endpoint") or {}
    address = endpoint.get("Address")
    if not address:
        return None

    cluster_id = _require(cluster, "CacheClusterId", "cache cluster")
    owner = f"cache node of cluster {cluster_id}"
    return InstanceRecord(
        cluster_id=cluster_id,
        node_id=_require(node, "CacheNodeId", owner),
        availability_zone=_require(node, "CustomerAvailabilityZone", owner),
        status=_require(node, "CacheNodeStatus", owner),
        instance_type=_require(cluster, "CacheNodeType", f"cache cluster {cluster_id}"),
        engine=_require(cluster, "Engine", f"cache cluster {cluster_id}"),
        engine_version=_require(cluster, "EngineVersion", f"cache cluster {cluster_id}"),
        endpoint_address=address,
        endpoint_port=int(_require(endpoint, "Port", f"endpoint of {owner}")),
    )


def record_labels(record: InstanceRecord) -> dict[str, str]:
    """Label set for one record, including ``tag_`` labels for its tags."""
    labels = {
        LABEL_CLUSTER_ID: record.cluster_id,
        LABEL_NODE_ID: record.node_id,
        LABEL_AZ: record.availability_zone,
        LABEL_INSTANCE_STATE: record.status,
        LABEL_INSTANCE_TYPE: record.instance_type,
        ADDRESS_LABEL: record.address,
        LABEL_ENGINE: record.engine,
        LABEL_ENGINE_VERSION: record.engine_version,
        LABEL_ENDPOINT_ADDRESS: record.endpoint_address,
        LABEL_ENDPOINT_PORT: str(record.endpoint_port),
    }
    for name, value in record.tags.items():
        labels[LABEL_TAG_PREFIX + name] = value
    return labels


def build_labels(cluster: dict[str, Any], node: dict[str, Any]) -> dict[str, str] | None:
    """Label set for a raw cluster/node pair, or None when the node is not ready."""
    record = parse_node(cluster, node)
    if record is None:
        return None
    return record_labels(record)
