"""
universe/models.py

Data models for the tab-centric traffic universe.

NodeKind        — planet (tab) | satellite (domain under a tab) |
                  asteroid (unassociated traffic) | cluster (squashed summary)
NodeMetrics     — per-node counters (no raw records stored)
UniverseNode    — live, mutable node owned by the UniverseAggregator
NodeView        — frozen copy of a node handed out in snapshots
UniverseState   — frozen snapshot produced by get_state()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NodeKind(str, Enum):
    PLANET = "planet"
    SATELLITE = "satellite"
    ASTEROID = "asteroid"
    CLUSTER = "cluster"


# ---------------------------------------------------------------------------
# Live nodes
# ---------------------------------------------------------------------------

@dataclass
class NodeMetrics:
    frequency: int = 0
    """Records seen."""

    volume: int = 0
    """Request + response body bytes seen (headers excluded)."""

    last_active: float = 0.0
    """Epoch ms of the most recent record (aggregator clock)."""


@dataclass
class UniverseNode:
    """
    One node in the traffic tree.

    Planet ids are the tab id as a string (stable per tab); satellite and
    asteroid ids are the hostname.  Only planets have children.
    """

    id: str
    kind: NodeKind
    label: str
    metrics: NodeMetrics = field(default_factory=NodeMetrics)
    children: dict[str, "UniverseNode"] = field(default_factory=dict)
    """Satellites keyed by hostname, in first-seen order."""

    def touch(self, volume: int, now_ms: float) -> None:
        self.metrics.frequency += 1
        self.metrics.volume += volume
        self.metrics.last_active = now_ms

    def view(self, children: tuple["NodeView", ...] = ()) -> "NodeView":
        return NodeView(
            id=self.id,
            kind=self.kind,
            label=self.label,
            frequency=self.metrics.frequency,
            volume=self.metrics.volume,
            last_active=self.metrics.last_active,
            children=children,
        )


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NodeView:
    """Immutable copy of a node; safe to hand to any consumer."""

    id: str
    kind: NodeKind
    label: str
    frequency: int
    volume: int
    last_active: float
    children: tuple["NodeView", ...] = ()

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "type": self.kind.value,
            "label": self.label,
            "metrics": {
                "frequency": self.frequency,
                "volume": self.volume,
                "lastActive": self.last_active,
            },
        }
        if self.kind is NodeKind.PLANET:
            d["children"] = [c.to_dict() for c in self.children]
        return d


@dataclass(frozen=True)
class UniverseState:
    """Snapshot of the whole tree, taken right after pruning."""

    timestamp: float
    window_duration: int
    domains: tuple[NodeView, ...]
    """Planets, each with at most the configured satellite budget."""

    asteroids: tuple[NodeView, ...] = ()

    def planet(self, planet_id: str) -> NodeView | None:
        return next((p for p in self.domains if p.id == planet_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "windowDuration": self.window_duration,
            "domains": [p.to_dict() for p in self.domains],
            "asteroids": [a.to_dict() for a in self.asteroids],
        }

    def __repr__(self) -> str:
        return (
            f"UniverseState(planets={len(self.domains)} "
            f"asteroids={len(self.asteroids)} "
            f"window={self.window_duration}ms)"
        )
