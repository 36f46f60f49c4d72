"""
Traffic Snapshot Models

Per-intersection, per-cycle congestion snapshot built by the aggregator
and retained by the predictor as training history.
"""

from pydantic import BaseModel, Field
from typing import Dict

from .vehicle import Direction


def empty_direction_flow() -> Dict[Direction, int]:
    """All four direction buckets, zeroed"""
    return {direction: 0 for direction in Direction}


class TrafficSnapshot(BaseModel):
    """
    Aggregated traffic state for one intersection in one detection cycle
    """
    intersection_id: str
    timestamp: float
    vehicle_count: int = Field(ge=0)
    avg_speed: float = Field(ge=0.0)
    hour: int = Field(ge=0, le=23)
    day_of_week: int = Field(ge=1, le=7)  # Monday = 1
    congestion_level: float = Field(ge=0.0, le=100.0)
    direction_flow: Dict[Direction, int] = Field(default_factory=empty_direction_flow)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "intersection_id": "Main_St_1st_Ave",
                "timestamp": 1704067200.0,
                "vehicle_count": 12,
                "avg_speed": 24.0,
                "hour": 8,
                "day_of_week": 1,
                "congestion_level": 60.0,
                "direction_flow": {"N": 4, "S": 3, "E": 3, "W": 2}
            }
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses"""
        return {
            'intersectionId': self.intersection_id,
            'timestamp': self.timestamp,
            'vehicleCount': self.vehicle_count,
            'avgSpeed': round(self.avg_speed, 2),
            'hour': self.hour,
            'dayOfWeek': self.day_of_week,
            'congestionLevel': round(self.congestion_level, 2),
            'directionFlow': {d.value: n for d, n in self.direction_flow.items()}
        }
