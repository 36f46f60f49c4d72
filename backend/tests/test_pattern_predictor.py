"""
Pattern Predictor Tests

Tests cover:
- Training cadence (tables rebuilt every N snapshots)
- Prediction blending, fallback and clamping
- Confidence bands and categories
- Recommendations
- Concurrent recording
"""

import threading
from datetime import datetime

import numpy as np
import pytest

from signal_control.models import CongestionCategory, TrafficSnapshot
from signal_control.prediction import INSUFFICIENT_DATA, PatternPredictor


# Wednesday 07:00, so a one-hour-ahead target is Wednesday 08:00
NOW = datetime(2024, 1, 3, 7, 0)


def make_snapshot(congestion: float, hour: int = 8, day: int = 3,
                  flow: dict = None, intersection_id: str = "A") -> TrafficSnapshot:
    return TrafficSnapshot(
        intersection_id=intersection_id,
        timestamp=NOW.timestamp(),
        vehicle_count=int(congestion / 5),
        avg_speed=30.0,
        hour=hour,
        day_of_week=day,
        congestion_level=congestion,
        direction_flow=flow or {"N": 0, "S": 0, "E": 0, "W": 0}
    )


@pytest.fixture
def predictor():
    """Deterministic predictor (no noise, fixed clock)"""
    return PatternPredictor(
        config={'noiseStdDev': 0},
        rng=np.random.default_rng(7),
        now_func=lambda: NOW
    )


# ============================================
# Training Tests
# ============================================

class TestTraining:
    """Test pattern table rebuilds"""

    def test_no_tables_before_interval(self, predictor):
        """Test nine snapshots do not train"""
        for _ in range(9):
            predictor.record("A", make_snapshot(80.0))

        assert predictor.get_pattern_tables("A") is None
        assert predictor.history_length("A") == 9

    def test_tables_built_at_interval(self, predictor):
        """Test the tenth snapshot triggers training"""
        for _ in range(10):
            predictor.record("A", make_snapshot(80.0))

        tables = predictor.get_pattern_tables("A")
        assert tables is not None
        assert tables.trained_on == 10
        assert tables.hourly[8] == pytest.approx(80.0)
        assert tables.daily[3] == pytest.approx(80.0)

    def test_rebuilt_from_full_history(self, predictor):
        """Test the twentieth snapshot retrains over all twenty"""
        for _ in range(10):
            predictor.record("A", make_snapshot(80.0))
        for _ in range(10):
            predictor.record("A", make_snapshot(40.0))

        tables = predictor.get_pattern_tables("A")
        assert tables.trained_on == 20
        assert tables.hourly[8] == pytest.approx(60.0)
        assert predictor.trainings_run == 2

    def test_hourly_and_daily_groups(self, predictor):
        """Test averages are grouped by hour and by day"""
        data = [
            make_snapshot(20.0, hour=8, day=1),
            make_snapshot(40.0, hour=8, day=2),
            make_snapshot(90.0, hour=17, day=2),
        ]

        tables = predictor.train("A", data)

        assert tables.hourly == pytest.approx({8: 30.0, 17: 90.0})
        assert tables.daily == pytest.approx({1: 20.0, 2: 65.0})

    def test_stale_rebuild_does_not_overwrite(self, predictor):
        """Test tables over older data never replace newer ones"""
        newer = [make_snapshot(90.0)] * 20
        older = [make_snapshot(10.0)] * 10

        predictor.train("A", newer)
        predictor.train("A", older)

        assert predictor.get_pattern_tables("A").trained_on == 20
        assert predictor.get_pattern_tables("A").hourly[8] == pytest.approx(90.0)

    def test_intersections_are_independent(self, predictor):
        """Test one intersection's history never trains another"""
        for _ in range(10):
            predictor.record("A", make_snapshot(80.0))

        assert predictor.get_pattern_tables("B") is None
        assert predictor.history_length("B") == 0
        assert predictor.tracked_intersections() == ["A"]

    def test_invalid_config_rejected(self):
        """Test a zero training interval is rejected"""
        with pytest.raises(ValueError):
            PatternPredictor(config={'trainingInterval': 0})


# ============================================
# Prediction Tests
# ============================================

class TestPrediction:
    """Test congestion predictions"""

    def test_unknown_intersection_uses_default(self, predictor):
        """Test no history gives the neutral default"""
        prediction = predictor.predict("nowhere", hours_ahead=1)

        assert prediction.predicted_congestion == pytest.approx(50.0)
        assert prediction.category == CongestionCategory.MODERATE
        assert prediction.predicted_vehicle_count == 10
        assert prediction.predicted_avg_speed == pytest.approx(40.0)
        assert 0.80 <= prediction.confidence <= 0.95

    def test_default_with_noise_stays_near_neutral(self):
        """Test the noisy fallback stays close to 50"""
        predictor = PatternPredictor(config={'noiseStdDev': 1.0}, rng=np.random.default_rng(3))

        prediction = predictor.predict("nowhere")

        assert 45.0 <= prediction.predicted_congestion <= 55.0

    def test_trained_prediction(self, predictor):
        """Test full hourly and weekly patterns"""
        for _ in range(10):
            predictor.record("A", make_snapshot(80.0))

        prediction = predictor.predict("A", hours_ahead=1)

        assert prediction.predicted_congestion == pytest.approx(80.0)
        assert prediction.category == CongestionCategory.HIGH
        assert prediction.predicted_vehicle_count == 16
        assert prediction.predicted_avg_speed == pytest.approx(28.0)
        assert prediction.target_time == pytest.approx(NOW.timestamp() + 3600)

    def test_missing_weekly_pattern_falls_back(self, predictor):
        """Test the weekly term uses the default when the day is unseen"""
        # Monday data only; target is Wednesday 08:00
        for _ in range(10):
            predictor.record("A", make_snapshot(80.0, hour=8, day=1))

        prediction = predictor.predict("A", hours_ahead=1)

        assert prediction.predicted_congestion == pytest.approx(0.7 * 80.0 + 0.3 * 50.0)

    def test_speed_floor(self, predictor):
        """Test predicted speed never drops below 20"""
        for _ in range(10):
            predictor.record("A", make_snapshot(100.0))

        prediction = predictor.predict("A")

        assert prediction.predicted_avg_speed == pytest.approx(20.0)
        assert prediction.predicted_vehicle_count == 20
        assert 0.60 <= prediction.confidence <= 0.80

    def test_low_category(self, predictor):
        """Test light traffic is LOW"""
        for _ in range(10):
            predictor.record("A", make_snapshot(10.0))

        prediction = predictor.predict("A")

        assert prediction.category == CongestionCategory.LOW
        assert 0.60 <= prediction.confidence <= 0.80

    def test_noise_is_clamped(self):
        """Test very noisy predictions stay within [0, 100]"""
        predictor = PatternPredictor(
            config={'noiseStdDev': 80.0},
            rng=np.random.default_rng(11),
            now_func=lambda: NOW
        )
        for _ in range(10):
            predictor.record("A", make_snapshot(95.0))

        for _ in range(50):
            prediction = predictor.predict("A")
            assert 0.0 <= prediction.predicted_congestion <= 100.0
            assert 0.60 <= prediction.confidence <= 0.95

    def test_prediction_counter(self, predictor):
        """Test predictions are counted in statistics"""
        predictor.predict("A")
        predictor.predict("B")

        stats = predictor.get_statistics()
        assert stats['totalPredictions'] == 2
        assert stats['trackedIntersections'] == 0

    def test_external_generator_leaves_state_alone(self):
        """Test a caller-supplied generator skips the predictor's noise and counter"""
        def noisy():
            return PatternPredictor({'noiseStdDev': 5.0}, rng=np.random.default_rng(5), now_func=lambda: NOW)

        queried, untouched = noisy(), noisy()

        queried.predict("A", rng=np.random.default_rng(99), record_stats=False)

        after_query = queried.predict("A")
        baseline = untouched.predict("A")
        assert after_query.predicted_congestion == baseline.predicted_congestion
        assert after_query.confidence == baseline.confidence
        assert queried.total_predictions == 1


# ============================================
# Recommendation Tests
# ============================================

class TestRecommendations:
    """Test pattern-based recommendations"""

    def test_insufficient_data(self, predictor):
        """Test no history yields the single notice"""
        assert predictor.recommendations("A") == [INSUFFICIENT_DATA]

    def test_peak_hours_sorted_by_congestion(self, predictor):
        """Test peak hours above 70 are listed busiest first"""
        predictor.record("A", make_snapshot(75.0, hour=17))
        predictor.record("A", make_snapshot(90.0, hour=8))
        predictor.record("A", make_snapshot(40.0, hour=12))

        notes = predictor.recommendations("A")

        assert notes[0] == "Peak congestion hours: 8:00, 17:00"
        assert notes[1] == "Consider extending green light duration during peak hours"

    def test_no_peak_hours(self, predictor):
        """Test quiet history only reports direction"""
        predictor.record("A", make_snapshot(70.0, hour=8))

        notes = predictor.recommendations("A")

        assert not any(note.startswith("Peak") for note in notes)
        assert len(notes) == 2

    def test_dominant_direction(self, predictor):
        """Test the busiest approach is recommended"""
        predictor.record("A", make_snapshot(50.0, flow={"N": 1, "S": 2, "E": 5, "W": 0}))
        predictor.record("A", make_snapshot(50.0, flow={"N": 3, "S": 0, "E": 1, "W": 0}))

        notes = predictor.recommendations("A")

        assert "Dominant traffic flow direction: E" in notes
        assert "Consider asymmetric signal timing favoring E direction" in notes

    def test_dominant_direction_tie_prefers_north(self, predictor):
        """Test ties resolve in N, S, E, W order"""
        predictor.record("A", make_snapshot(50.0))

        assert "Dominant traffic flow direction: N" in predictor.recommendations("A")

    def test_recommendations_before_training(self, predictor):
        """Test recommendations use history even before tables exist"""
        predictor.record("A", make_snapshot(85.0, hour=9))

        assert predictor.get_pattern_tables("A") is None
        assert predictor.recommendations("A")[0] == "Peak congestion hours: 9:00"


# ============================================
# Concurrency Tests
# ============================================

class TestConcurrency:
    """Test concurrent recording"""

    def test_concurrent_records(self, predictor):
        """Test no snapshots are lost under concurrent recording"""
        def worker():
            for _ in range(50):
                predictor.record("A", make_snapshot(60.0))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert predictor.history_length("A") == 200
        assert predictor.get_pattern_tables("A").trained_on == 200
        assert predictor.trainings_run == 20

    def test_clear_history(self, predictor):
        """Test clearing removes history and tables"""
        for _ in range(10):
            predictor.record("A", make_snapshot(60.0))

        predictor.clear_history("A")

        assert predictor.history_length("A") == 0
        assert predictor.get_pattern_tables("A") is None
