"""
Traffic Analytics Module

Running per-intersection counters behind the reporting surface.

Features:
- Latest-cycle vehicle count per intersection
- All-time average speed per intersection
- Congestion hotspots (top-N by latest count)
- Aggregate totals
"""

import threading
from dataclasses import dataclass
from typing import Dict, List

from signal_control.models import VehicleObservation


@dataclass
class IntersectionTotals:
    """Accumulated observations for one intersection"""
    latest_count: int = 0
    vehicles_seen: int = 0
    speed_sum: float = 0.0
    cycles: int = 0

    @property
    def average_speed(self) -> float:
        if self.vehicles_seen == 0:
            return 0.0
        return self.speed_sum / self.vehicles_seen


class TrafficAnalytics:
    """
    Track detection batches for reporting and adaptation

    The average speed is taken over every vehicle seen at an intersection
    since startup, not just the latest batch.
    """

    def __init__(self):
        """Initialize analytics"""
        self._totals: Dict[str, IntersectionTotals] = {}
        self._lock = threading.Lock()

    def record_batch(self, intersection_id: str, vehicles: List[VehicleObservation]):
        """
        Record one detection cycle's batch

        Args:
            intersection_id: Intersection ID
            vehicles: Detected vehicles (may be empty)
        """
        with self._lock:
            totals = self._totals.setdefault(intersection_id, IntersectionTotals())
            totals.latest_count = len(vehicles)
            totals.vehicles_seen += len(vehicles)
            totals.speed_sum += sum(v.speed for v in vehicles)
            totals.cycles += 1

    def get_average_speed(self, intersection_id: str) -> float:
        """All-time average speed (0 for unknown or empty intersections)"""
        with self._lock:
            totals = self._totals.get(intersection_id)
            return totals.average_speed if totals else 0.0

    def get_latest_count(self, intersection_id: str) -> int:
        """Vehicle count of the most recent cycle"""
        with self._lock:
            totals = self._totals.get(intersection_id)
            return totals.latest_count if totals else 0

    def get_congestion_hotspots(self, limit: int = 5) -> List[str]:
        """
        Intersections with the highest latest vehicle count

        Args:
            limit: Maximum number of intersections to return

        Returns:
            Intersection IDs, busiest first
        """
        with self._lock:
            ranked = sorted(
                self._totals.items(),
                key=lambda item: item[1].latest_count,
                reverse=True
            )
        return [intersection_id for intersection_id, _ in ranked[:limit]]

    def monitored_intersections(self) -> List[str]:
        """Intersections with at least one recorded cycle"""
        with self._lock:
            return list(self._totals.keys())

    @property
    def intersections_monitored(self) -> int:
        with self._lock:
            return len(self._totals)

    @property
    def total_vehicles(self) -> int:
        with self._lock:
            return sum(t.vehicles_seen for t in self._totals.values())

    def get_statistics(self) -> dict:
        """Get analytics statistics"""
        with self._lock:
            return {
                'intersectionsMonitored': len(self._totals),
                'totalVehicles': sum(t.vehicles_seen for t in self._totals.values()),
                'totalCycles': sum(t.cycles for t in self._totals.values())
            }
