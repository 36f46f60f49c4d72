"""
Data Models Package

Pydantic models shared by the aggregator, predictor, signal controllers,
emergency coordinator and reporting surface.
"""

from .vehicle import VehicleType, Direction, VehicleObservation
from .traffic import TrafficSnapshot, empty_direction_flow
from .prediction import CongestionCategory, PredictionResult
from .signal import SignalPhase, SignalState

__all__ = [
    # Vehicle
    "VehicleType",
    "Direction",
    "VehicleObservation",

    # Traffic
    "TrafficSnapshot",
    "empty_direction_flow",

    # Prediction
    "CongestionCategory",
    "PredictionResult",

    # Signal
    "SignalPhase",
    "SignalState",
]
