# ABOUTME: Tests for hazard kinds, the per-floor hazard store, and snapshots
# ABOUTME: Covers clear-removes-entry semantics, floor isolation and snapshot immutability

import pytest
from safeexit.hazards import (
    HazardKind,
    HazardSnapshot,
    HazardStore,
    IMPASSABLE_KINDS,
    is_exit_blocked,
    is_impassable,
)


def test_parse_accepts_known_kinds():
    """Test HazardKind.parse maps strings onto the closed enum"""
    assert HazardKind.parse("fire") is HazardKind.FIRE
    assert HazardKind.parse("Smoke") is HazardKind.SMOKE
    assert HazardKind.parse("exit-blocked") is HazardKind.EXIT_BLOCKED
    assert HazardKind.parse(HazardKind.CLOSED) is HazardKind.CLOSED


@pytest.mark.parametrize("value", [None, "", "clear", "CLEAR"])
def test_parse_treats_empty_values_as_clear(value):
    assert HazardKind.parse(value) is HazardKind.CLEAR


def test_parse_rejects_unknown_kind():
    with pytest.raises(ValueError):
        HazardKind.parse("flood")


def test_impassable_kinds_exclude_exit_blocked():
    """Test exit-blocked never makes a node impassable"""
    assert HazardKind.EXIT_BLOCKED not in IMPASSABLE_KINDS
    assert HazardKind.CLEAR not in IMPASSABLE_KINDS
    assert len(IMPASSABLE_KINDS) == 4


def test_predicates_are_independent():
    snapshot = HazardSnapshot.from_mapping(
        {"kitchen": "fire", "exitB": "exit-blocked"}, "GF"
    )
    assert is_impassable(snapshot, "kitchen")
    assert not is_exit_blocked(snapshot, "kitchen")
    assert is_exit_blocked(snapshot, "exitB")
    assert not is_impassable(snapshot, "exitB")
    assert not is_impassable(snapshot, "reception")


def test_store_missing_entry_is_clear(store):
    assert store.get_hazard("GF", "kitchen") is HazardKind.CLEAR
    assert store.get_hazard("nowhere", "kitchen") is HazardKind.CLEAR


def test_store_set_and_get(store):
    store.set_hazard("GF", "kitchen", "smoke")
    assert store.get_hazard("GF", "kitchen") is HazardKind.SMOKE
    assert store.is_node_blocked("GF", "kitchen")


def test_store_falsy_value_removes_entry(store):
    """Test setting an empty value removes the key instead of storing a marker"""
    store.set_hazard("GF", "kitchen", "fire")
    store.set_hazard("GF", "kitchen", "")
    assert "kitchen" not in store.active_hazards("GF")

    store.set_hazard("GF", "washroom", "blocked")
    store.clear_hazard("GF", "washroom")
    assert store.active_hazards("GF") == {}


def test_store_rejects_unknown_kind(store):
    with pytest.raises(ValueError):
        store.set_hazard("GF", "kitchen", "lava")
    assert store.active_hazards("GF") == {}


def test_store_floors_are_isolated(store):
    store.set_hazard("GF", "kitchen", "fire")
    store.set_hazard("F1", "lobby1", "smoke")

    assert store.snapshot("GF").kind("lobby1") is HazardKind.CLEAR
    assert store.snapshot("F1").kind("kitchen") is HazardKind.CLEAR

    store.clear_floor("GF")
    assert store.active_hazards("GF") == {}
    assert store.get_hazard("F1", "lobby1") is HazardKind.SMOKE


def test_snapshot_does_not_follow_store(store):
    """Test later store mutations never leak into an existing snapshot"""
    store.set_hazard("GF", "kitchen", "fire")
    snapshot = store.snapshot("GF")

    store.set_hazard("GF", "kitchen", "")
    store.set_hazard("GF", "washroom", "blocked")

    assert snapshot.kind("kitchen") is HazardKind.FIRE
    assert snapshot.kind("washroom") is HazardKind.CLEAR
    assert snapshot.floor_id == "GF"
    assert len(snapshot) == 1


def test_snapshot_is_read_only(store):
    store.set_hazard("GF", "kitchen", "fire")
    snapshot = store.snapshot("GF")

    with pytest.raises(TypeError):
        snapshot["kitchen"] = HazardKind.CLEAR
    with pytest.raises(TypeError):
        snapshot._hazards["washroom"] = HazardKind.FIRE


def test_snapshot_from_mapping_copies_source():
    source = {"kitchen": "fire", "reception": ""}
    snapshot = HazardSnapshot.from_mapping(source, "GF")
    source["washroom"] = "smoke"

    assert dict(snapshot) == {"kitchen": HazardKind.FIRE}
    assert "washroom" not in snapshot
