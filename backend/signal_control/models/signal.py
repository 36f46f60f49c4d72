"""
Signal State Models

Read-only snapshot of a single intersection's signal controller.
"""

from pydantic import BaseModel
from typing import Optional
from enum import Enum

from .prediction import PredictionResult


class SignalPhase(str, Enum):
    """Traffic signal phases"""
    RED = "RED"
    YELLOW = "YELLOW"
    GREEN = "GREEN"


class SignalState(BaseModel):
    """
    State of one intersection's signal

    Invariants: green in [15, 90], red in [20, 60], yellow fixed at 3.
    """
    intersection_id: str
    phase: SignalPhase
    green_duration: int
    red_duration: int
    yellow_duration: int = 3
    last_change: float                    # controller clock reading
    emergency_override: bool = False
    upcoming_prediction: Optional[PredictionResult] = None

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "intersection_id": "Main_St_1st_Ave",
                "phase": "GREEN",
                "green_duration": 40,
                "red_duration": 30,
                "yellow_duration": 3,
                "last_change": 1532.2,
                "emergency_override": False
            }
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses"""
        return {
            'intersectionId': self.intersection_id,
            'phase': self.phase.value,
            'greenDuration': self.green_duration,
            'redDuration': self.red_duration,
            'yellowDuration': self.yellow_duration,
            'lastChange': self.last_change,
            'emergencyOverride': self.emergency_override,
            'upcomingPrediction': (
                self.upcoming_prediction.to_dict() if self.upcoming_prediction else None
            )
        }
