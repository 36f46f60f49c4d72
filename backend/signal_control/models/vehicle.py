"""
Vehicle Observation Models

Output contract of the vehicle sensor feed: one observation per detected
vehicle, produced once per detection cycle for an intersection.
"""

from pydantic import BaseModel, Field
from enum import Enum
import time


class VehicleType(str, Enum):
    """Detected vehicle categories"""
    CAR = "CAR"
    TRUCK = "TRUCK"
    MOTORCYCLE = "MOTORCYCLE"
    BUS = "BUS"
    EMERGENCY = "EMERGENCY"


class Direction(str, Enum):
    """Approach direction of a vehicle"""
    NORTH = "N"
    SOUTH = "S"
    EAST = "E"
    WEST = "W"


class VehicleObservation(BaseModel):
    """
    A single detected vehicle

    Immutable once created; discarded after aggregation.
    """
    vehicle_id: str
    vehicle_type: VehicleType = VehicleType.CAR
    speed: float = Field(ge=0.0)          # km/h
    intersection_id: str
    direction: Direction
    detected_at: float = Field(default_factory=time.time)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "vehicle_id": "V1704067200000_0",
                "vehicle_type": "CAR",
                "speed": 34.5,
                "intersection_id": "Main_St_1st_Ave",
                "direction": "N",
                "detected_at": 1704067200.0
            }
        }

    @property
    def is_emergency(self) -> bool:
        """Whether this vehicle should trigger a signal override"""
        return self.vehicle_type == VehicleType.EMERGENCY
