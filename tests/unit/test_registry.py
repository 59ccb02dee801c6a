"""Unit tests for the name registry and per-component dependency caches."""
from __future__ import annotations

import pytest

from conftest import ALICE, OWNER, ManualClock
from synthvault.errors import AuthorizationError, MissingDependencyError, ValidationError
from synthvault.events import EventLog
from synthvault.resolver import DependencyCache, NameRegistry


class _Component:
    def __init__(self, address: str) -> None:
        self.address = address


@pytest.fixture()
def cache(registry: NameRegistry, clock: ManualClock) -> DependencyCache:
    import logging

    events = EventLog("Consumer", clock, logging.getLogger("test"))
    return DependencyCache(registry, ["A", "B", "A"], events, "Consumer")


class TestNameRegistry:
    def test_import_and_lookup(self, registry: NameRegistry) -> None:
        a = _Component("a")
        registry.import_addresses(OWNER, ["A"], [a])
        assert registry.get_address("A") is a
        assert registry.names() == ("A",)

    def test_unknown_name_is_none(self, registry: NameRegistry) -> None:
        assert registry.get_address("nope") is None

    def test_overwrite(self, registry: NameRegistry) -> None:
        a1, a2 = _Component("a1"), _Component("a2")
        registry.import_addresses(OWNER, ["A"], [a1])
        registry.import_addresses(OWNER, ["A"], [a2])
        assert registry.get_address("A") is a2

    def test_length_mismatch(self, registry: NameRegistry) -> None:
        with pytest.raises(ValidationError, match="Input lengths must match"):
            registry.import_addresses(OWNER, ["A", "B"], [_Component("a")])

    def test_owner_only(self, registry: NameRegistry) -> None:
        with pytest.raises(AuthorizationError):
            registry.import_addresses(ALICE, ["A"], [_Component("a")])

    def test_require_missing_raises_with_reason(self, registry: NameRegistry) -> None:
        with pytest.raises(MissingDependencyError, match="need A") as exc:
            registry.require_and_get_address("A", "need A")
        assert exc.value.name == "A"

    def test_are_addresses_imported(self, registry: NameRegistry) -> None:
        a = _Component("a")
        registry.import_addresses(OWNER, ["A"], [a])
        assert registry.are_addresses_imported(["A"], [a])
        assert not registry.are_addresses_imported(["A"], [_Component("a")])

    def test_emits_event_per_pair(self, registry: NameRegistry) -> None:
        registry.import_addresses(OWNER, ["A", "B"], [_Component("a"), _Component("b")])
        imported = registry.events.named("AddressImported")
        assert [e.args["name"] for e in imported] == ["A", "B"]
        assert imported[0].args["destination"] == "a"


class TestDependencyCache:
    def test_required_names_deduplicated(self, cache: DependencyCache) -> None:
        assert cache.required_names == ("A", "B")

    def test_require_before_rebuild_raises(self, cache: DependencyCache) -> None:
        with pytest.raises(MissingDependencyError, match="Missing address: A"):
            cache.require("A")

    def test_rebuild_fails_fast_on_missing(
        self, registry: NameRegistry, cache: DependencyCache
    ) -> None:
        registry.import_addresses(OWNER, ["A"], [_Component("a")])
        with pytest.raises(MissingDependencyError) as exc:
            cache.rebuild()
        assert exc.value.name == "B"
        assert not cache.is_current()

    def test_rebuild_then_require(
        self, registry: NameRegistry, cache: DependencyCache
    ) -> None:
        a, b = _Component("a"), _Component("b")
        registry.import_addresses(OWNER, ["A", "B"], [a, b])
        snapshot = cache.rebuild()
        assert snapshot.get("A") is a
        assert cache.require("B") is b
        assert cache.is_current()

    def test_not_refreshed_implicitly(
        self, registry: NameRegistry, cache: DependencyCache
    ) -> None:
        a, b = _Component("a"), _Component("b")
        registry.import_addresses(OWNER, ["A", "B"], [a, b])
        cache.rebuild()

        replacement = _Component("a2")
        registry.import_addresses(OWNER, ["A"], [replacement])
        assert not cache.is_current()
        assert cache.require("A") is a

        cache.rebuild()
        assert cache.require("A") is replacement
        assert cache.is_current()
