"""
Congestion Aggregator Module

Turn a raw vehicle batch into a single congestion snapshot.

Features:
- Congestion score calculation (0-100) from density and speed deficit
- Average speed
- Per-direction flow counts (all four buckets always present)
"""

from datetime import datetime
from typing import List, Dict, Optional
import time

from signal_control.models import (
    Direction,
    TrafficSnapshot,
    VehicleObservation,
    empty_direction_flow,
)


class CongestionAggregator:
    """
    Build TrafficSnapshots from vehicle observations

    Pure function of its input plus the wall-clock time of computation.
    Weights can be configured via config/traffic.yaml.

    Formula:
        congestion = 100 * (0.6 * min(count / 20, 1) + 0.4 * max(0, (60 - avg_speed) / 60))
    """

    def __init__(self, config: dict = None):
        """
        Initialize aggregator with configuration

        Args:
            config: Traffic configuration dictionary
        """
        if config is None:
            config = {}

        congestion_config = config.get('congestion', {})

        self.saturation_count = congestion_config.get('saturationCount', 20)
        self.free_flow_speed = congestion_config.get('freeFlowSpeed', 60.0)
        self.density_weight = congestion_config.get('densityWeight', 0.6)
        self.speed_weight = congestion_config.get('speedWeight', 0.4)

        if self.saturation_count <= 0 or self.free_flow_speed <= 0:
            raise ValueError("saturationCount and freeFlowSpeed must be positive")

    def calculate_congestion(self, vehicle_count: int, avg_speed: float) -> float:
        """
        Calculate congestion score (0-100)

        An empty batch always scores 0, whatever the speed.

        Args:
            vehicle_count: Number of vehicles detected this cycle
            avg_speed: Average speed of those vehicles (km/h)

        Returns:
            Congestion score from 0 to 100
        """
        if vehicle_count <= 0:
            return 0.0

        density_factor = min(vehicle_count / self.saturation_count, 1.0)
        speed_factor = max(0.0, (self.free_flow_speed - avg_speed) / self.free_flow_speed)

        score = (density_factor * self.density_weight + speed_factor * self.speed_weight) * 100
        return max(0.0, min(100.0, score))

    def calculate_direction_flow(self, observations: List[VehicleObservation]) -> Dict[Direction, int]:
        """Count vehicles per approach direction"""
        flow = empty_direction_flow()
        for observation in observations:
            flow[observation.direction] += 1
        return flow

    def aggregate(self,
                  intersection_id: str,
                  observations: List[VehicleObservation],
                  timestamp: Optional[float] = None) -> TrafficSnapshot:
        """
        Aggregate one detection cycle into a snapshot

        Args:
            intersection_id: Intersection the batch belongs to
            observations: Detected vehicles (may be empty)
            timestamp: Snapshot time (default: now)

        Returns:
            TrafficSnapshot for this cycle
        """
        if timestamp is None:
            timestamp = time.time()

        vehicle_count = len(observations)
        if vehicle_count:
            avg_speed = sum(o.speed for o in observations) / vehicle_count
        else:
            avg_speed = 0.0

        moment = datetime.fromtimestamp(timestamp)

        return TrafficSnapshot(
            intersection_id=intersection_id,
            timestamp=timestamp,
            vehicle_count=vehicle_count,
            avg_speed=avg_speed,
            hour=moment.hour,
            day_of_week=moment.isoweekday(),
            congestion_level=self.calculate_congestion(vehicle_count, avg_speed),
            direction_flow=self.calculate_direction_flow(observations)
        )

    def get_weights(self) -> dict:
        """Get current weight configuration"""
        return {
            'saturationCount': self.saturation_count,
            'freeFlowSpeed': self.free_flow_speed,
            'densityWeight': self.density_weight,
            'speedWeight': self.speed_weight
        }
