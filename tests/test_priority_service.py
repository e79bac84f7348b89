# tests/test_priority_service.py
"""Unit tests for the priority classifier."""

import pytest
from unittest.mock import MagicMock
from app.models.enums import PriorityLevel
from app.services.priority_service import (classify, classify_fill, needs_urgent_collection,
                                           refresh_priority, priority_color, urgent_zones)

ZONE_TYPES = ("residential", "commercial", "industrial", "public")


def make_zone(percent, zone_type="residential", priority_level="low"):
    zone = MagicMock()
    zone.id = 1
    zone.capacity_liters = 1000
    zone.current_fill_level = percent * 10
    zone.zone_type = zone_type
    zone.priority_level = priority_level
    return zone


class TestClassify:
    @pytest.mark.parametrize("percent,expected", [
        (0, PriorityLevel.LOW),
        (69.9, PriorityLevel.LOW),
        (70, PriorityLevel.MEDIUM),
        (89.9, PriorityLevel.MEDIUM),
        (90, PriorityLevel.HIGH),
        (100, PriorityLevel.HIGH),
    ])
    def test_residential_thresholds(self, percent, expected):
        assert classify(make_zone(percent)) == expected

    def test_industrial_goes_high_at_sixty(self):
        assert classify(make_zone(60, "industrial")) == PriorityLevel.HIGH
        assert classify(make_zone(59.9, "industrial")) == PriorityLevel.LOW

    def test_commercial_not_weighted(self):
        assert classify(make_zone(60, "commercial")) == PriorityLevel.LOW

    @pytest.mark.parametrize("zone_type", ZONE_TYPES)
    def test_monotonic_in_fill(self, zone_type):
        ranks = [classify_fill(p / 2, zone_type).rank for p in range(0, 201)]
        assert ranks == sorted(ranks)

    def test_zero_capacity_is_low(self):
        zone = make_zone(0)
        zone.capacity_liters = 0
        zone.current_fill_level = 500
        assert classify(zone) == PriorityLevel.LOW


class TestUrgency:
    def test_critical_fill_is_urgent(self):
        assert needs_urgent_collection(make_zone(95))

    def test_admin_high_override_is_urgent(self):
        assert needs_urgent_collection(make_zone(10, priority_level="high"))

    def test_fill_check_survives_low_override(self):
        assert needs_urgent_collection(make_zone(92, priority_level="low"))

    def test_medium_not_urgent(self):
        assert not needs_urgent_collection(make_zone(75, priority_level="medium"))

    def test_refresh_priority_stores_value(self):
        zone = make_zone(75)
        assert refresh_priority(zone) == PriorityLevel.MEDIUM
        assert zone.priority_level == "medium"

    def test_priority_color(self):
        assert priority_color("high") == "#ef4444"
        assert priority_color("unknown") == "#6b7280"

    def test_urgent_zones_sorted_fullest_first(self, db, make_zone):
        make_zone(fill_liters=910, name="A")
        make_zone(fill_liters=990, name="B")
        make_zone(fill_liters=500, name="C")
        make_zone(fill_liters=999, name="D", is_active=False)
        assert [z.name for z in urgent_zones(db)] == ["B", "A"]
