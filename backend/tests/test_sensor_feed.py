"""
Simulated Sensor Feed Tests
"""

from datetime import datetime

import pytest

from signal_control.models import VehicleType
from signal_control.simulation import SimulatedSensorFeed


def feed_at(hour: int, seed: int = 42, **kwargs) -> SimulatedSensorFeed:
    return SimulatedSensorFeed(seed=seed, now_func=lambda: datetime(2024, 1, 3, hour, 30), **kwargs)


class TestSimulatedSensorFeed:
    """Test synthetic detections"""

    @pytest.mark.parametrize("hour", [0, 3, 8, 12, 18, 23])
    def test_always_detects_a_vehicle(self, hour):
        """Test every batch is non-empty"""
        feed = feed_at(hour)

        for _ in range(20):
            assert len(feed.detect("A")) >= 1

    def test_rush_hour_is_busier(self):
        """Test morning rush produces more vehicles than night"""
        rush = feed_at(8)
        night = feed_at(3)

        rush_counts = [len(rush.detect("A")) for _ in range(20)]
        night_counts = [len(night.detect("A")) for _ in range(20)]

        assert min(rush_counts) >= 10
        assert max(night_counts) <= 6

    def test_observation_fields(self):
        """Test observations belong to the requested intersection"""
        vehicles = feed_at(12).detect("Oak_St_2nd_Ave")

        for vehicle in vehicles:
            assert vehicle.intersection_id == "Oak_St_2nd_Ave"
            assert vehicle.speed >= 15.0

    def test_seeded_feed_is_reproducible(self):
        """Test equal seeds give equal batches"""
        first = [(v.vehicle_type, v.speed, v.direction) for v in feed_at(10, seed=9).detect("A")]
        second = [(v.vehicle_type, v.speed, v.direction) for v in feed_at(10, seed=9).detect("A")]

        assert first == second

    def test_emergency_rate(self):
        """Test emergency vehicles appear at the configured rate"""
        feed = feed_at(8, emergency_rate=1.0)

        assert all(v.vehicle_type == VehicleType.EMERGENCY for v in feed.detect("A"))
        assert feed.batches_generated == 1
