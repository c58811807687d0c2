"""
tests/test_universe.py

Tests for universe/aggregator.py — planets, satellites, asteroids, pruning
at the window boundary and satellite coagulation.
"""

from __future__ import annotations

import pytest

from netorbit.backend.config import ConfigError
from netorbit.backend.models import TrafficRecord
from netorbit.backend.universe import NodeKind, UniverseAggregator


class FakeClock:
    """Manually advanced epoch-ms clock."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_packet(url: str, tab_id: int | None = 1, volume: int = 10, type: str = "script") -> TrafficRecord:
    return TrafficRecord(
        request_id=f"{url}-{volume}",
        url=url,
        type=type,
        tab_id=tab_id,
        response_content_length=volume,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def agg(clock) -> UniverseAggregator:
    return UniverseAggregator(window_duration_ms=60_000, max_satellites_per_planet=8, clock=clock)


# ---------------------------------------------------------------------------
# add_packet
# ---------------------------------------------------------------------------

class TestAddPacket:

    def test_creates_planet_and_satellite(self, agg):
        agg.add_packet(make_packet("https://example.com/", volume=30))
        planet = agg.tabs[1]
        assert planet.kind is NodeKind.PLANET
        assert planet.id == "1"
        assert planet.label == "example.com"
        assert planet.metrics.volume == 30
        assert list(planet.children) == ["example.com"]

    def test_volume_counts_body_bytes_only(self, agg):
        record = make_packet("https://example.com/", volume=11)
        record.request_content_length = 5
        record.request_headers_size = 400
        record.response_headers_size = 600
        agg.add_packet(record)
        assert agg.tabs[1].metrics.volume == 16
        assert agg.tabs[1].children["example.com"].metrics.volume == 16

    def test_header_only_traffic_has_no_volume(self, agg):
        agg.add_packet(TrafficRecord(
            request_id="h", url="https://a.com/", tab_id=1,
            request_headers_size=400, response_headers_size=600,
        ))
        state = agg.get_state()
        assert state.planet("1").volume == 0
        assert state.planet("1").frequency == 1

    def test_metrics_accumulate(self, agg, clock):
        agg.add_packet(make_packet("https://example.com/", volume=10))
        clock.now += 500
        agg.add_packet(make_packet("https://example.com/a", volume=20))
        metrics = agg.tabs[1].children["example.com"].metrics
        assert metrics.frequency == 2
        assert metrics.volume == 30
        assert metrics.last_active == clock.now

    def test_main_frame_relabels_planet(self, agg):
        agg.add_packet(make_packet("https://a.com/"))
        agg.add_packet(make_packet("https://b.com/", type="main_frame"))
        assert agg.tabs[1].label == "b.com"

    def test_subresource_does_not_relabel(self, agg):
        agg.add_packet(make_packet("https://a.com/"))
        agg.add_packet(make_packet("https://cdn.b.com/x.js"))
        assert agg.tabs[1].label == "a.com"

    @pytest.mark.parametrize("tab_id", [None, -1, 0])
    def test_unassociated_traffic_is_asteroid(self, agg, tab_id):
        agg.add_packet(make_packet("https://telemetry.example.net/", tab_id=tab_id))
        assert agg.tabs == {}
        node = agg.interstellar["telemetry.example.net"]
        assert node.kind is NodeKind.ASTEROID

    def test_malformed_url_labelled_unknown(self, agg):
        agg.add_packet(make_packet("not a url"))
        assert agg.tabs[1].label == "unknown"

    def test_stats(self, agg):
        agg.add_packet(make_packet("https://a.com/", tab_id=1))
        agg.add_packet(make_packet("https://a.com/", tab_id=2))
        agg.add_packet(make_packet("https://a.com/", tab_id=None))
        assert agg.stats["packets_added"] == 3
        assert agg.stats["planets_created"] == 2
        assert agg.stats["planets_active"] == 2


# ---------------------------------------------------------------------------
# Pruning
# ---------------------------------------------------------------------------

class TestPrune:

    def test_stale_planet_pruned(self, agg, clock):
        agg.add_packet(make_packet("https://example.com/"))
        clock.now += 60_000 + 1
        state = agg.get_state()
        assert state.domains == ()
        assert agg.stats["planets_pruned"] == 1

    def test_planet_at_window_edge_kept(self, agg, clock):
        agg.add_packet(make_packet("https://example.com/"))
        clock.now += 60_000
        assert agg.get_state().planet("1") is not None

    def test_fresh_planet_kept(self, agg):
        agg.add_packet(make_packet("https://example.com/"))
        assert agg.get_state().planet("1") is not None

    def test_stale_satellite_pruned_from_live_planet(self, agg, clock):
        agg.add_packet(make_packet("https://old.com/"))
        clock.now += 40_000
        agg.add_packet(make_packet("https://new.com/"))
        clock.now += 30_000

        assert agg.prune() == 1
        assert list(agg.tabs[1].children) == ["new.com"]
        assert agg.stats["satellites_pruned"] == 1

    def test_stale_asteroid_pruned(self, agg, clock):
        agg.add_packet(make_packet("https://bg.example.net/", tab_id=None))
        clock.now += 60_001
        assert agg.get_state().asteroids == ()
        assert agg.stats["asteroids_pruned"] == 1

    def test_pruned_tab_gets_new_planet(self, agg, clock):
        agg.add_packet(make_packet("https://example.com/", volume=100))
        clock.now += 60_001
        agg.prune()
        agg.add_packet(make_packet("https://example.com/", volume=5))
        assert agg.tabs[1].metrics.volume == 5
        assert agg.stats["planets_created"] == 2


# ---------------------------------------------------------------------------
# Coagulation
# ---------------------------------------------------------------------------

class TestCoagulation:

    def test_browsing_session(self, agg):
        for volume in range(10, 101, 10):
            agg.add_packet(make_packet("https://example.com/", volume=volume))
        for i in range(9):
            agg.add_packet(make_packet(f"https://sub{i}.example.com/", volume=5))

        state = agg.get_state()
        assert len(state.domains) == 1
        planet = state.planet("1")
        assert planet.volume == 550 + 45
        assert planet.frequency == 19

        home, *subs, cluster = planet.children
        assert home.id == "example.com"
        assert home.volume == 550
        assert len(subs) == 8
        assert all(s.kind is NodeKind.SATELLITE and s.volume == 5 for s in subs)
        assert cluster.kind is NodeKind.CLUSTER
        assert cluster.id == "1-cluster"
        assert cluster.label == "+1 Others"
        assert cluster.volume == 5

    def test_cluster_sums_squashed_satellites(self, clock):
        agg = UniverseAggregator(max_satellites_per_planet=2, clock=clock)
        agg.add_packet(make_packet("https://home.com/", volume=1))
        for host, volume in [("b.com", 100), ("c.com", 50), ("d.com", 30), ("e.com", 20)]:
            clock.now += 10
            agg.add_packet(make_packet(f"https://{host}/", volume=volume))

        children = agg.get_state().planet("1").children
        assert [c.id for c in children] == ["home.com", "b.com", "c.com", "1-cluster"]
        cluster = children[-1]
        assert cluster.volume == 50
        assert cluster.frequency == 2
        assert cluster.last_active == clock.now

    def test_cap_plus_cluster_once_home_expires(self, clock):
        agg = UniverseAggregator(window_duration_ms=60_000, max_satellites_per_planet=2, clock=clock)
        agg.add_packet(make_packet("https://home.com/", volume=1_000))
        clock.now += 50_000
        for host, volume in [("b.com", 40), ("c.com", 30), ("d.com", 20), ("e.com", 10)]:
            agg.add_packet(make_packet(f"https://{host}/", volume=volume))
        clock.now += 20_000

        planet = agg.get_state().planet("1")
        assert planet.label == "home.com"
        assert len(planet.children) == 2 + 1
        assert [c.id for c in planet.children] == ["b.com", "c.com", "1-cluster"]
        cluster = planet.children[-1]
        assert cluster.kind is NodeKind.CLUSTER
        assert cluster.volume == 20 + 10

    def test_no_cluster_within_budget(self, agg):
        for host in ("a.com", "b.com", "c.com"):
            agg.add_packet(make_packet(f"https://{host}/"))
        children = agg.get_state().planet("1").children
        assert [c.id for c in children] == ["a.com", "b.com", "c.com"]
        assert all(c.kind is NodeKind.SATELLITE for c in children)

    def test_snapshot_does_not_touch_live_tree(self, clock):
        agg = UniverseAggregator(max_satellites_per_planet=1, clock=clock)
        for host in ("a.com", "b.com", "c.com", "d.com"):
            agg.add_packet(make_packet(f"https://{host}/"))
        agg.get_state()
        assert len(agg.tabs[1].children) == 4

    def test_to_dict_shape(self, agg):
        agg.add_packet(make_packet("https://example.com/", volume=42))
        agg.add_packet(make_packet("https://bg.net/", tab_id=None))
        d = agg.get_state().to_dict()

        assert d["windowDuration"] == 60_000
        planet = d["domains"][0]
        assert planet["type"] == "planet"
        assert planet["metrics"]["volume"] == 42
        assert "lastActive" in planet["metrics"]
        assert planet["children"][0]["type"] == "satellite"
        assert d["asteroids"][0]["type"] == "asteroid"
        assert "children" not in d["asteroids"][0]


class TestSetConfig:

    def test_cap_change_applies_to_next_state(self, agg):
        for host in ("a.com", "b.com", "c.com"):
            agg.add_packet(make_packet(f"https://{host}/"))
        agg.set_config(max_satellites_per_planet=1)
        children = agg.get_state().planet("1").children
        assert children[-1].kind is NodeKind.CLUSTER

    def test_invalid_value_keeps_config(self, agg):
        with pytest.raises(ConfigError):
            agg.set_config(window_duration_ms=0)
        assert agg.window_duration_ms == 60_000
