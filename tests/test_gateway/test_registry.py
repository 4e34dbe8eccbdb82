"""
Tests for the visit registry.
"""

import pytest

from adlink.common.config import GatewaySettings
from adlink.common.exceptions import VisitNotFoundError
from adlink.gateway.registry import GatewayRegistry


def test_register_and_get() -> None:
    registry = GatewayRegistry(GatewaySettings(countdown_seconds=3))
    controller = registry.new_controller("Ab3xY9zK", user_agent="pytest")

    visit = registry.register(controller)

    assert registry.get(visit.visit_id).controller is controller
    assert controller.countdown_seconds == 3
    assert len(registry) == 1


def test_unknown_visit() -> None:
    registry = GatewayRegistry(GatewaySettings())

    with pytest.raises(VisitNotFoundError):
        registry.get("missing")


def test_expired_visits_are_pruned() -> None:
    registry = GatewayRegistry(GatewaySettings(visit_ttl_seconds=60))
    visit = registry.register(registry.new_controller("Ab3xY9zK"))
    visit.opened_at -= 120

    assert registry.prune() == 1
    with pytest.raises(VisitNotFoundError):
        registry.get(visit.visit_id)


def test_oldest_visit_evicted_at_capacity() -> None:
    registry = GatewayRegistry(GatewaySettings(max_visits=2))
    first = registry.register(registry.new_controller("a"))
    registry.register(registry.new_controller("b"))
    registry.register(registry.new_controller("c"))

    assert len(registry) == 2
    with pytest.raises(VisitNotFoundError):
        registry.get(first.visit_id)


def test_close_forgets_everything() -> None:
    registry = GatewayRegistry(GatewaySettings())
    registry.register(registry.new_controller("a"))

    registry.close()

    assert len(registry) == 0
