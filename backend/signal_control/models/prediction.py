"""
Congestion Prediction Models

Models for pattern-based congestion predictions.
"""

from pydantic import BaseModel, Field
from enum import Enum


class CongestionCategory(str, Enum):
    """Predicted congestion band"""
    LOW = "LOW"               # < 30
    MODERATE = "MODERATE"     # 30-70
    HIGH = "HIGH"             # >= 70

    @classmethod
    def from_congestion(cls, congestion: float) -> "CongestionCategory":
        """Classify a 0-100 congestion score"""
        if congestion < 30:
            return cls.LOW
        if congestion < 70:
            return cls.MODERATE
        return cls.HIGH


class PredictionResult(BaseModel):
    """
    Congestion prediction for an intersection at a future instant

    Created fresh on each request; not cached.
    """
    intersection_id: str
    target_time: float                    # unix timestamp
    predicted_congestion: float = Field(ge=0.0, le=100.0)
    predicted_vehicle_count: int = Field(ge=0)
    predicted_avg_speed: float
    confidence: float = Field(ge=0.0, le=1.0)
    category: CongestionCategory

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "intersection_id": "Main_St_1st_Ave",
                "target_time": 1704070800.0,
                "predicted_congestion": 72.4,
                "predicted_vehicle_count": 14,
                "predicted_avg_speed": 31.0,
                "confidence": 0.86,
                "category": "HIGH"
            }
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses"""
        return {
            'intersectionId': self.intersection_id,
            'targetTime': self.target_time,
            'predictedCongestion': round(self.predicted_congestion, 2),
            'predictedVehicleCount': self.predicted_vehicle_count,
            'predictedAvgSpeed': round(self.predicted_avg_speed, 2),
            'confidence': round(self.confidence, 2),
            'category': self.category.value
        }
