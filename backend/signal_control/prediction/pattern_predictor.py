"""
Pattern Predictor - Historical Congestion Patterns

Predicts intersection congestion hours ahead using:
- Hour-of-day average congestion table
- Day-of-week average congestion table
- Weighted blend of both plus Gaussian noise

Tables are rebuilt wholesale from the full history each time an
intersection's history length reaches a multiple of the training interval.
"""

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

import numpy as np

from signal_control.models import (
    CongestionCategory,
    Direction,
    PredictionResult,
    TrafficSnapshot,
)


INSUFFICIENT_DATA = "Insufficient data for recommendations"


@dataclass(frozen=True)
class PatternTables:
    """
    Average congestion per hour-of-day (0-23) and day-of-week (1-7)

    Never mutated after construction; a rebuild swaps in a new instance.
    """
    hourly: Dict[int, float]
    daily: Dict[int, float]
    trained_on: int = 0
    trained_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses"""
        return {
            'hourly': {h: round(v, 2) for h, v in sorted(self.hourly.items())},
            'daily': {d: round(v, 2) for d, v in sorted(self.daily.items())},
            'trainedOn': self.trained_on,
            'trainedAt': self.trained_at
        }


class PatternPredictor:
    """
    Moving-pattern congestion predictor

    Usage:
        predictor = PatternPredictor(config={'noiseStdDev': 5.0})
        predictor.record('Main_St_1st_Ave', snapshot)
        prediction = predictor.predict('Main_St_1st_Ave', hours_ahead=1)
        notes = predictor.recommendations('Main_St_1st_Ave')
    """

    def __init__(self,
                 config: dict = None,
                 rng: Optional[np.random.Generator] = None,
                 now_func: Optional[Callable[[], datetime]] = None):
        """
        Initialize pattern predictor

        Args:
            config: Configuration dict with options:
                - trainingInterval: Rebuild tables every N snapshots (default: 10)
                - defaultCongestion: Fallback for missing patterns (default: 50.0)
                - hourlyWeight / weeklyWeight: Blend weights (default: 0.7 / 0.3)
                - noiseStdDev: Gaussian noise std dev (default: 5.0, 0 disables)
                - peakThreshold: Hourly average above which an hour is a peak (default: 70)
            rng: numpy Generator used for noise and confidence
            now_func: Clock returning the current datetime
        """
        self.config = config or {}

        self.training_interval = self.config.get('trainingInterval', 10)
        self.default_congestion = self.config.get('defaultCongestion', 50.0)
        self.hourly_weight = self.config.get('hourlyWeight', 0.7)
        self.weekly_weight = self.config.get('weeklyWeight', 0.3)
        self.noise_std = self.config.get('noiseStdDev', 5.0)
        self.peak_threshold = self.config.get('peakThreshold', 70.0)

        if self.training_interval <= 0:
            raise ValueError(f"trainingInterval must be positive: {self.training_interval}")
        if self.noise_std < 0:
            raise ValueError(f"noiseStdDev must be non-negative: {self.noise_std}")

        self.rng = rng if rng is not None else np.random.default_rng()
        self.now_func = now_func or datetime.now

        # intersection_id -> append-only snapshot list
        self._history: Dict[str, List[TrafficSnapshot]] = {}
        # intersection_id -> current PatternTables
        self._tables: Dict[str, PatternTables] = {}
        self._lock = threading.Lock()

        # Statistics
        self.total_predictions = 0
        self.trainings_run = 0

        print("[OK] Pattern Predictor initialized")
        print(f"   Training interval: every {self.training_interval} snapshots")

    def record(self, intersection_id: str, snapshot: TrafficSnapshot):
        """
        Append a snapshot to an intersection's history

        Rebuilds the pattern tables when the history length is a positive
        multiple of the training interval.

        Args:
            intersection_id: Intersection ID
            snapshot: TrafficSnapshot from the aggregator
        """
        with self._lock:
            history = self._history.setdefault(intersection_id, [])
            history.append(snapshot)
            training_data = list(history) if len(history) % self.training_interval == 0 else None

        if training_data is not None:
            self.train(intersection_id, training_data)

    def train(self, intersection_id: str, data: List[TrafficSnapshot]) -> PatternTables:
        """
        Rebuild pattern tables for an intersection from the given history

        Args:
            intersection_id: Intersection ID
            data: Full snapshot history to fit

        Returns:
            The newly built PatternTables
        """
        hourly_groups: Dict[int, List[float]] = defaultdict(list)
        daily_groups: Dict[int, List[float]] = defaultdict(list)

        for snapshot in data:
            hourly_groups[snapshot.hour].append(snapshot.congestion_level)
            daily_groups[snapshot.day_of_week].append(snapshot.congestion_level)

        tables = PatternTables(
            hourly={hour: float(np.mean(values)) for hour, values in hourly_groups.items()},
            daily={day: float(np.mean(values)) for day, values in daily_groups.items()},
            trained_on=len(data)
        )

        with self._lock:
            current = self._tables.get(intersection_id)
            # A slower concurrent rebuild over older data must not win
            if current is None or current.trained_on <= tables.trained_on:
                self._tables[intersection_id] = tables
            self.trainings_run += 1

        print(f"[PREDICT] Pattern tables rebuilt for {intersection_id} ({len(data)} snapshots)")
        return tables

    def predict(self,
                intersection_id: str,
                hours_ahead: int = 1,
                rng: Optional[np.random.Generator] = None,
                record_stats: bool = True) -> PredictionResult:
        """
        Predict congestion for an intersection hours ahead

        Missing hourly or weekly patterns (including unknown intersections)
        fall back to the neutral default congestion.

        Read-only callers (reports, API queries) pass their own generator and
        record_stats=False, leaving the predictor's noise sequence and
        counters untouched.

        Args:
            intersection_id: Intersection ID
            hours_ahead: Prediction horizon in hours
            rng: Generator for noise and confidence (default: the predictor's own)
            record_stats: Count this call in totalPredictions

        Returns:
            PredictionResult (never None)
        """
        target = self.now_func() + timedelta(hours=hours_ahead)
        rng = rng if rng is not None else self.rng

        with self._lock:
            tables = self._tables.get(intersection_id)

        hourly = self.default_congestion
        weekly = self.default_congestion
        if tables is not None:
            hourly = tables.hourly.get(target.hour, self.default_congestion)
            weekly = tables.daily.get(target.isoweekday(), self.default_congestion)

        congestion = hourly * self.hourly_weight + weekly * self.weekly_weight
        if self.noise_std > 0:
            congestion += float(rng.normal(0.0, self.noise_std))
        congestion = max(0.0, min(100.0, congestion))

        if record_stats:
            self.total_predictions += 1

        return PredictionResult(
            intersection_id=intersection_id,
            target_time=target.timestamp(),
            predicted_congestion=congestion,
            predicted_vehicle_count=int(congestion / 5),
            predicted_avg_speed=max(20.0, 60.0 - congestion * 0.4),
            confidence=self._calculate_confidence(congestion, rng),
            category=CongestionCategory.from_congestion(congestion)
        )

    def _calculate_confidence(self, congestion: float, rng: np.random.Generator) -> float:
        """Higher confidence inside the typical 20-80 operating band"""
        if 20.0 <= congestion <= 80.0:
            return float(rng.uniform(0.80, 0.95))
        return float(rng.uniform(0.60, 0.80))

    def recommendations(self, intersection_id: str) -> List[str]:
        """
        Timing recommendations from an intersection's history

        Args:
            intersection_id: Intersection ID

        Returns:
            List of human-readable notices
        """
        history = self.get_history(intersection_id)
        if not history:
            return [INSUFFICIENT_DATA]

        recommendations = []

        # Peak hours
        hourly_groups: Dict[int, List[float]] = defaultdict(list)
        for snapshot in history:
            hourly_groups[snapshot.hour].append(snapshot.congestion_level)

        hourly_avg = {hour: float(np.mean(values)) for hour, values in hourly_groups.items()}
        peak_hours = sorted(
            (hour for hour, avg in hourly_avg.items() if avg > self.peak_threshold),
            key=lambda hour: hourly_avg[hour],
            reverse=True
        )

        if peak_hours:
            recommendations.append(
                "Peak congestion hours: " + ", ".join(f"{hour}:00" for hour in peak_hours)
            )
            recommendations.append("Consider extending green light duration during peak hours")

        # Direction flow
        totals = {direction: 0 for direction in Direction}
        for snapshot in history:
            for direction, count in snapshot.direction_flow.items():
                totals[direction] += count

        dominant = max(Direction, key=lambda direction: totals[direction]).value

        recommendations.append(f"Dominant traffic flow direction: {dominant}")
        recommendations.append(f"Consider asymmetric signal timing favoring {dominant} direction")

        return recommendations

    def get_pattern_tables(self, intersection_id: str) -> Optional[PatternTables]:
        """Get the current pattern tables (None until first training)"""
        with self._lock:
            return self._tables.get(intersection_id)

    def get_history(self, intersection_id: str) -> List[TrafficSnapshot]:
        """Get a copy of an intersection's snapshot history"""
        with self._lock:
            return list(self._history.get(intersection_id, []))

    def history_length(self, intersection_id: str) -> int:
        """Number of snapshots recorded for an intersection"""
        with self._lock:
            return len(self._history.get(intersection_id, []))

    def total_snapshots(self) -> int:
        """Total training snapshots across all intersections"""
        with self._lock:
            return sum(len(h) for h in self._history.values())

    def tracked_intersections(self) -> List[str]:
        """Intersections with at least one recorded snapshot"""
        with self._lock:
            return list(self._history.keys())

    def get_statistics(self) -> dict:
        """Get predictor statistics"""
        with self._lock:
            lengths = [len(h) for h in self._history.values()]
            trained = len(self._tables)

        return {
            'trackedIntersections': len(lengths),
            'trainedIntersections': trained,
            'totalSnapshots': sum(lengths),
            'avgHistoryLength': round(float(np.mean(lengths)), 1) if lengths else 0.0,
            'trainingsRun': self.trainings_run,
            'totalPredictions': self.total_predictions,
            'trainingInterval': self.training_interval
        }

    def clear_history(self, intersection_id: str = None):
        """
        Clear history and tables for an intersection or all intersections

        Args:
            intersection_id: Intersection to clear (None = all)
        """
        with self._lock:
            if intersection_id:
                self._history.pop(intersection_id, None)
                self._tables.pop(intersection_id, None)
            else:
                self._history.clear()
                self._tables.clear()


# Global pattern predictor instance
_pattern_predictor: Optional[PatternPredictor] = None


def get_pattern_predictor() -> Optional[PatternPredictor]:
    """Get the global PatternPredictor instance"""
    return _pattern_predictor


def init_pattern_predictor(config: dict = None, rng: Optional[np.random.Generator] = None) -> PatternPredictor:
    """Initialize the global PatternPredictor with config"""
    global _pattern_predictor
    _pattern_predictor = PatternPredictor(config, rng=rng)
    return _pattern_predictor
