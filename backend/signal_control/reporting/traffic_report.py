"""
Traffic Report Module

Read-only periodic summary of the control loop: hotspots, next-hour
predictions, recommendations and aggregate counters.
"""

from datetime import datetime
from typing import Dict, List, Optional
import time

import numpy as np
from pydantic import BaseModel, Field

from signal_control.models import PredictionResult
from signal_control.prediction import PatternPredictor
from signal_control.reporting.analytics import TrafficAnalytics


class HotspotEntry(BaseModel):
    """A busy intersection in the current report"""
    intersection_id: str
    vehicle_count: int
    avg_speed: float


class ReportTotals(BaseModel):
    """Aggregate counters"""
    intersections_monitored: int = 0
    total_vehicles: int = 0
    total_training_snapshots: int = 0


class TrafficReport(BaseModel):
    """
    Snapshot summary of the whole network

    Built from read-only accessors; building it never mutates controller
    or predictor state.
    """
    generated_at: float = Field(default_factory=time.time)
    hotspots: List[HotspotEntry] = Field(default_factory=list)
    predictions: Dict[str, PredictionResult] = Field(default_factory=dict)
    recommendations: Dict[str, List[str]] = Field(default_factory=dict)
    totals: ReportTotals = Field(default_factory=ReportTotals)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses"""
        return {
            'generatedAt': self.generated_at,
            'hotspots': [
                {
                    'intersectionId': h.intersection_id,
                    'vehicleCount': h.vehicle_count,
                    'avgSpeed': round(h.avg_speed, 1)
                }
                for h in self.hotspots
            ],
            'predictions': {i: p.to_dict() for i, p in self.predictions.items()},
            'recommendations': self.recommendations,
            'totals': {
                'intersectionsMonitored': self.totals.intersections_monitored,
                'totalVehicles': self.totals.total_vehicles,
                'totalTrainingSnapshots': self.totals.total_training_snapshots
            }
        }


class TrafficReporter:
    """
    Build and format traffic reports

    Usage:
        reporter = TrafficReporter(analytics, predictor)
        report = reporter.build_report()
        print(reporter.format_report(report))
    """

    def __init__(self,
                 analytics: TrafficAnalytics,
                 predictor: PatternPredictor,
                 hotspot_limit: int = 5,
                 horizon_hours: int = 1,
                 rng: Optional[np.random.Generator] = None):
        """
        Initialize reporter

        Args:
            analytics: Running traffic counters
            predictor: Pattern predictor (queried, never trained here)
            hotspot_limit: Number of hotspots to include
            horizon_hours: Prediction horizon in hours
            rng: Generator for report predictions, separate from the predictor's own
        """
        self.analytics = analytics
        self.predictor = predictor
        self.hotspot_limit = hotspot_limit
        self.horizon_hours = horizon_hours
        self.rng = rng if rng is not None else np.random.default_rng()

        self.reports_generated = 0
        self._last_report: Optional[TrafficReport] = None

    def build_report(self) -> TrafficReport:
        """Collect a fresh report from analytics and predictor"""
        hotspots = [
            HotspotEntry(
                intersection_id=intersection_id,
                vehicle_count=self.analytics.get_latest_count(intersection_id),
                avg_speed=self.analytics.get_average_speed(intersection_id)
            )
            for intersection_id in self.analytics.get_congestion_hotspots(self.hotspot_limit)
        ]

        monitored = self.analytics.monitored_intersections()

        report = TrafficReport(
            hotspots=hotspots,
            predictions={
                intersection_id: self.predictor.predict(
                    intersection_id, self.horizon_hours, rng=self.rng, record_stats=False
                )
                for intersection_id in monitored
            },
            recommendations={
                intersection_id: self.predictor.recommendations(intersection_id)
                for intersection_id in monitored
            },
            totals=ReportTotals(
                intersections_monitored=self.analytics.intersections_monitored,
                total_vehicles=self.analytics.total_vehicles,
                total_training_snapshots=self.predictor.total_snapshots()
            )
        )

        self.reports_generated += 1
        self._last_report = report
        return report

    def get_last_report(self) -> Optional[TrafficReport]:
        """Most recently built report"""
        return self._last_report

    def format_report(self, report: TrafficReport) -> str:
        """Render a report as console text"""
        generated = datetime.fromtimestamp(report.generated_at).strftime("%Y-%m-%d %H:%M:%S")

        lines = [
            "",
            "=== TRAFFIC ANALYTICS REPORT ===",
            f"Generated at: {generated}",
            "",
            "Current Traffic Status:"
        ]
        for hotspot in report.hotspots:
            lines.append(f"- {hotspot.intersection_id}: {hotspot.vehicle_count} vehicles "
                         f"(Avg Speed: {hotspot.avg_speed:.1f} km/h)")

        lines.append("")
        lines.append(f"Traffic Predictions (Next {self.horizon_hours}h):")
        for intersection_id, prediction in report.predictions.items():
            lines.append(f"- {intersection_id} (+{self.horizon_hours}h): {prediction.category.value} "
                         f"congestion ({prediction.confidence * 100:.0f}% confidence)")
            lines.append(f"  Expected: {prediction.predicted_vehicle_count} vehicles at "
                         f"{prediction.predicted_avg_speed:.1f} km/h avg")

        lines.append("")
        lines.append("Pattern-Based Recommendations:")
        for intersection_id, notes in report.recommendations.items():
            if notes:
                lines.append(f"- {intersection_id}:")
                lines.extend(f"  * {note}" for note in notes)

        lines.append("")
        lines.append("System Statistics:")
        lines.append(f"Total Intersections Monitored: {report.totals.intersections_monitored}")
        lines.append(f"Total Vehicles Detected: {report.totals.total_vehicles}")
        lines.append(f"Training Snapshots: {report.totals.total_training_snapshots}")

        return "\n".join(lines)
