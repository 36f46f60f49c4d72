"""
Vehicle Sensor Feed

Sensor feed contract consumed by the control loop, plus a simulated feed
producing realistic-looking synthetic traffic.

Simulated traffic:
- Vehicle count follows time-of-day (morning/evening rush, lunch, night)
- Speed depends on rush hour and vehicle type
- Directions are uniform over N, S, E, W
- About 2% of vehicles are emergency vehicles
"""

import random
import time
from datetime import datetime
from typing import Callable, List, Optional, Protocol

from signal_control.models import Direction, VehicleObservation, VehicleType


class SensorFeed(Protocol):
    """Produces one batch of observations per detection cycle"""

    def detect(self, intersection_id: str) -> List[VehicleObservation]:
        ...


class SimulatedSensorFeed:
    """
    Synthetic vehicle detections for an intersection

    Usage:
        feed = SimulatedSensorFeed(seed=42)
        vehicles = feed.detect("Main_St_1st_Ave")
    """

    # Speed multipliers per vehicle type
    TYPE_SPEED_FACTOR = {
        VehicleType.CAR: 1.0,
        VehicleType.TRUCK: 0.8,
        VehicleType.BUS: 0.85,
        VehicleType.MOTORCYCLE: 1.2,
        VehicleType.EMERGENCY: 1.5,
    }

    def __init__(self,
                 seed: Optional[int] = None,
                 base_speed: float = 35.0,
                 emergency_rate: float = 0.02,
                 now_func: Optional[Callable[[], datetime]] = None):
        """
        Initialize simulated feed

        Args:
            seed: Random seed (None = nondeterministic)
            base_speed: Free-running average speed in km/h
            emergency_rate: Probability that a vehicle is an emergency vehicle
            now_func: Clock returning the current datetime
        """
        self.random = random.Random(seed)
        self.base_speed = base_speed
        self.emergency_rate = emergency_rate
        self.now_func = now_func or datetime.now

        self.batches_generated = 0

    def detect(self, intersection_id: str) -> List[VehicleObservation]:
        """Generate one batch of detections (at least one vehicle)"""
        hour = self.now_func().hour
        vehicle_count = max(1, self._base_vehicle_count(hour) + self.random.randint(0, 4) - 2)
        batch_id = int(time.time() * 1000)

        vehicles = []
        for i in range(vehicle_count):
            vehicle_type = self._random_vehicle_type()
            vehicles.append(VehicleObservation(
                vehicle_id=f"V{batch_id}_{i}",
                vehicle_type=vehicle_type,
                speed=self._realistic_speed(hour, vehicle_type),
                intersection_id=intersection_id,
                direction=self.random.choice(list(Direction))
            ))

        self.batches_generated += 1
        return vehicles

    def _base_vehicle_count(self, hour: int) -> int:
        """Rush-hour shaped vehicle counts"""
        if 7 <= hour <= 9:
            return 12 + self.random.randint(0, 7)    # Morning rush
        elif 17 <= hour <= 19:
            return 10 + self.random.randint(0, 7)    # Evening rush
        elif 12 <= hour <= 14:
            return 8 + self.random.randint(0, 3)     # Lunch time
        elif hour >= 22 or hour <= 5:
            return 2 + self.random.randint(0, 2)     # Late night
        return 5 + self.random.randint(0, 5)

    def _realistic_speed(self, hour: int, vehicle_type: VehicleType) -> float:
        speed = self.base_speed

        if 7 <= hour <= 9 or 17 <= hour <= 19:
            speed *= 0.7

        speed *= self.TYPE_SPEED_FACTOR[vehicle_type]
        return max(15.0, speed + self.random.gauss(0.0, 10.0))

    def _random_vehicle_type(self) -> VehicleType:
        roll = self.random.random()
        if roll < self.emergency_rate:
            return VehicleType.EMERGENCY
        elif roll < self.emergency_rate + 0.05:
            return VehicleType.BUS
        elif roll < self.emergency_rate + 0.10:
            return VehicleType.TRUCK
        elif roll < self.emergency_rate + 0.23:
            return VehicleType.MOTORCYCLE
        return VehicleType.CAR
