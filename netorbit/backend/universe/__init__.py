"""
universe/__init__.py

Public API for the traffic-universe sub-package.
"""

from .aggregator import UniverseAggregator
from .models import NodeKind, NodeMetrics, NodeView, UniverseNode, UniverseState

__all__ = [
    "UniverseAggregator",
    "NodeKind",
    "NodeMetrics",
    "NodeView",
    "UniverseNode",
    "UniverseState",
]
