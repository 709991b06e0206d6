"""Test helpers (small, reusable doubles)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RecordingDelegate:
    """DelegateMapper double: upper-cases keys and remembers its inputs."""

    source_keys: tuple[str, ...] | None = None
    calls: list[dict[str, Any]] = field(default_factory=list)

    def transform(self, record: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(dict(record))
        return {k.upper(): v for k, v in record.items()}


@dataclass
class RecordingModel:
    """ModelBuilder double: tags each construction and logs the order."""

    tag: str
    log: list[str] = field(default_factory=list)

    def construct(self, record: dict[str, Any]) -> dict[str, Any]:
        self.log.append(self.tag)
        return {"model": self.tag, **record}
