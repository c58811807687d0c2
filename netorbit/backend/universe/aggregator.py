"""
universe/aggregator.py

UniverseAggregator — tab-centric hierarchical traffic summary.

Tree shape:
  - each browser tab with traffic is a PLANET (id = tab id, label = domain)
  - each hostname contacted from that tab is a SATELLITE of its planet
  - traffic with no usable tab id lands in the interstellar map as ASTEROIDs

Planet lifecycle:
  absent → created on first record → active (metrics updated per record)
         → stale (idle for window_duration_ms) → pruned
A pruned tab that sends traffic again gets a brand-new planet with the same id.

Coagulation (get_state):
  The planet's home satellite (hostname == planet label) is always shown.
  When the remaining satellites exceed max_satellites_per_planet, they are
  ranked by volume and everything past the budget is folded into one CLUSTER
  node carrying the summed frequency/volume.

get_state() returns a frozen deep copy; callers never see live nodes.

Thread safety: NOT thread-safe. Called exclusively from asyncio coroutines.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from ..config import UniverseConfig
from ..models import TrafficRecord
from ..urls import hostname_of
from .models import NodeKind, NodeView, UniverseNode, UniverseState

logger = logging.getLogger(__name__)

MAIN_FRAME = "main_frame"


def _wall_ms() -> float:
    return time.time() * 1000.0


class UniverseAggregator:
    """
    Args:
        window_duration_ms:        Idle time after which nodes are pruned.
        max_satellites_per_planet: Satellite budget per planet (home excluded).
        clock:                     Epoch-millisecond clock.
    """

    def __init__(
        self,
        window_duration_ms: int = 60_000,
        max_satellites_per_planet: int = 8,
        clock: Callable[[], float] = _wall_ms,
    ) -> None:
        self.config = UniverseConfig(
            window_duration_ms=window_duration_ms,
            max_satellites_per_planet=max_satellites_per_planet,
        )
        self._clock = clock
        self.tabs: dict[int, UniverseNode] = {}
        self.interstellar: dict[str, UniverseNode] = {}

        self.stats: dict[str, int] = {
            "packets_added": 0,
            "planets_created": 0,
            "planets_pruned": 0,
            "satellites_pruned": 0,
            "asteroids_pruned": 0,
            "planets_active": 0,
        }

    @property
    def window_duration_ms(self) -> int:
        return self.config.window_duration_ms

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set_config(self, **partial) -> UniverseConfig:
        """
        Merge-overwrite tunables; effective from the next get_state().

        Raises ConfigError and keeps the old config if a value is invalid.
        """
        self.config = self.config.merged(partial)
        logger.info("Universe config updated: %s", partial)
        return self.config

    def add_packet(self, record: TrafficRecord) -> None:
        """Account one record against its planet + satellite, or as an asteroid."""
        now = self._clock()
        domain = hostname_of(record.url)
        volume = record.content_bytes
        self.stats["packets_added"] += 1

        if not record.has_tab:
            node = self.interstellar.get(domain)
            if node is None:
                node = UniverseNode(domain, NodeKind.ASTEROID, domain)
                self.interstellar[domain] = node
            node.touch(volume, now)
            return

        planet = self.tabs.get(record.tab_id)
        if planet is None:
            planet = UniverseNode(str(record.tab_id), NodeKind.PLANET, domain)
            self.tabs[record.tab_id] = planet
            self.stats["planets_created"] += 1
            logger.debug("New planet for tab %s (%s)", record.tab_id, domain)
        elif record.type == MAIN_FRAME and planet.label != domain:
            logger.debug("Tab %s navigated %s → %s", record.tab_id, planet.label, domain)
            planet.label = domain
        planet.touch(volume, now)

        satellite = planet.children.get(domain)
        if satellite is None:
            satellite = UniverseNode(domain, NodeKind.SATELLITE, domain)
            planet.children[domain] = satellite
        satellite.touch(volume, now)
        self.stats["planets_active"] = len(self.tabs)

    def prune(self) -> int:
        """
        Drop every node idle for longer than the window.

        Returns the number of nodes removed (planets, satellites, asteroids).
        """
        cutoff = self._clock() - self.config.window_duration_ms
        planets = sats = asteroids = 0

        for tab_id in [t for t, p in self.tabs.items() if p.metrics.last_active < cutoff]:
            del self.tabs[tab_id]
            planets += 1

        for planet in self.tabs.values():
            stale = [k for k, s in planet.children.items() if s.metrics.last_active < cutoff]
            for key in stale:
                del planet.children[key]
            sats += len(stale)

        for key in [k for k, a in self.interstellar.items() if a.metrics.last_active < cutoff]:
            del self.interstellar[key]
            asteroids += 1

        self.stats["planets_pruned"] += planets
        self.stats["satellites_pruned"] += sats
        self.stats["asteroids_pruned"] += asteroids
        self.stats["planets_active"] = len(self.tabs)
        if planets or sats or asteroids:
            logger.info(
                "Pruned %d planets, %d satellites, %d asteroids (window=%dms)",
                planets, sats, asteroids, self.config.window_duration_ms,
            )
        return planets + sats + asteroids

    def get_state(self) -> UniverseState:
        """Prune, coagulate over-full planets and return a frozen snapshot."""
        self.prune()
        return UniverseState(
            timestamp=self._clock(),
            window_duration=self.config.window_duration_ms,
            domains=tuple(self._coagulate(p) for p in self.tabs.values()),
            asteroids=tuple(a.view() for a in self.interstellar.values()),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _coagulate(self, planet: UniverseNode) -> NodeView:
        cap = self.config.max_satellites_per_planet
        home = planet.children.get(planet.label)
        others = [s for s in planet.children.values() if s is not home]

        if len(others) <= cap:
            return planet.view(tuple(s.view() for s in planet.children.values()))

        ranked = sorted(others, key=lambda s: s.metrics.volume, reverse=True)
        kept, squashed = ranked[:cap], ranked[cap:]
        cluster = NodeView(
            id=f"{planet.id}-cluster",
            kind=NodeKind.CLUSTER,
            label=f"+{len(squashed)} Others",
            frequency=sum(s.metrics.frequency for s in squashed),
            volume=sum(s.metrics.volume for s in squashed),
            last_active=max(s.metrics.last_active for s in squashed),
        )
        children = [s.view() for s in kept] + [cluster]
        if home is not None:
            children.insert(0, home.view())
        return planet.view(tuple(children))
