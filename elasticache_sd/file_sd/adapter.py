"""Writes discovery snapshots to a Prometheus file_sd JSON file."""

from __future__ import annotations

import json
import logging
import os
import queue
import threading
from pathlib import Path
from typing import Any, Protocol

from ..discovery.models import TargetGroup
from ..exceptions import OutputError

logger = logging.getLogger(__name__)

# How often the consumer re-checks the stop event and the producer thread
_POLL_SECONDS = 0.5
_JOIN_TIMEOUT_SECONDS = 5.0


class SnapshotSource(Protocol):
    def run(self, stop: threading.Event, out: queue.Queue) -> None: ...


def generate_groups(sd_name: str, snapshot: list[TargetGroup]) -> dict[str, dict[str, Any]]:
    """Key each target group as ``<sd_name>:<source>:<index>`` in file_sd shape."""
    groups: dict[str, dict[str, Any]] = {}
    for i, group in enumerate(snapshot):
        targets = sorted(value for target in group.targets for value in target.values())
        groups[f"{sd_name}:{group.source}:{i}"] = {
            "targets": targets,
            "labels": dict(group.labels),
        }
    return groups


class FileSDAdapter:
    """Consumes snapshots and rewrites the output file whenever they change."""

    def __init__(self, discovery: SnapshotSource, output_file: str | Path, sd_name: str):
        self._discovery = discovery
        self._output = Path(output_file)
        self._sd_name = sd_name
        self._groups: dict[str, dict[str, Any]] | None = None

    @property
    def output_file(self) -> Path:
        return self._output

    def run(self, stop: threading.Event) -> None:
        """Drive the discovery loop in a background thread until ``stop`` is set.

        Re-raises any exception that killed the discovery thread.
        """
        updates: queue.Queue = queue.Queue(maxsize=1)
        failures: list[BaseException] = []

        def _produce() -> None:
            try:
                self._discovery.run(stop, updates)
            except Exception as exc:
                failures.append(exc)

        producer = threading.Thread(target=_produce, name="elasticache-discovery", daemon=True)
        producer.start()
        logger.info("Writing targets to %s", self._output, extra={"output_file": str(self._output)})

        while not stop.is_set():
            try:
                snapshot = updates.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                if not producer.is_alive():
                    break
                continue
            try:
                self.refresh(snapshot)
            except OutputError as exc:
                logger.error("%s", exc, extra={"output_file": str(self._output)})

        stop.set()
        producer.join(timeout=_JOIN_TIMEOUT_SECONDS)
        if failures:
            raise failures[0]

    def refresh(self, snapshot: list[TargetGroup]) -> bool:
        """Write the snapshot if it differs from the last one written. Returns True on write."""
        groups = generate_groups(self._sd_name, snapshot)
        if groups == self._groups:
            logger.debug("Snapshot unchanged, not rewriting %s", self._output)
            return False
        self._write(groups)
        self._groups = groups
        logger.info(
            "Wrote %d target groups", len(groups),
            extra={"target_groups": len(groups), "output_file": str(self._output)},
        )
        return True

    def write_once(self, snapshot: list[TargetGroup]) -> None:
        self._write(generate_groups(self._sd_name, snapshot))

    def _write(self, groups: dict[str, dict[str, Any]]) -> None:
        """Serialize groups sorted by key, replacing the output file atomically."""
        entries = [
            {"targets": groups[key]["targets"], "labels": dict(sorted(groups[key]["labels"].items()))}
            for key in sorted(groups)
        ]
        tmp_path = self._output.with_name(self._output.name + ".tmp")
        try:
            with open(tmp_path, "w") as f:
                json.dump(entries, f, indent=4)
            os.replace(tmp_path, self._output)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise OutputError(f"Could not write {self._output}: {exc}") from exc
