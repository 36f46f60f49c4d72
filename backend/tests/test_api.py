"""
API Endpoint Tests

Tests cover:
- Root and health endpoints
- Signal state endpoints
- Report, hotspot, prediction and recommendation endpoints
- Behaviour before the system is initialized
"""

import numpy as np
import pytest
from fastapi.testclient import TestClient

from signal_control.density import CongestionAggregator
from signal_control.main import app
from signal_control.models import VehicleObservation
from signal_control.orchestrator import TrafficManagementSystem, set_traffic_system
from signal_control.prediction import INSUFFICIENT_DATA, PatternPredictor

# No context manager: the lifespan (and its background loop) is not started
client = TestClient(app)


class EmptyFeed:
    def detect(self, intersection_id):
        return []


def make_vehicles(intersection_id: str, count: int, speed: float = 30.0):
    return [
        VehicleObservation(vehicle_id=f"V{i}", speed=speed, intersection_id=intersection_id, direction="W")
        for i in range(count)
    ]


@pytest.fixture
def system():
    """Installed traffic system with some recorded traffic"""
    system = TrafficManagementSystem(
        config={'intersections': ["A", "B"]},
        sensor_feed=EmptyFeed(),
        predictor=PatternPredictor({'noiseStdDev': 0}, rng=np.random.default_rng(5))
    )
    aggregator = CongestionAggregator()

    for intersection_id, count in (("A", 4), ("B", 9)):
        vehicles = make_vehicles(intersection_id, count)
        system.analytics.record_batch(intersection_id, vehicles)
        system.predictor.record(intersection_id, aggregator.aggregate(intersection_id, vehicles))

    set_traffic_system(system)
    yield system
    set_traffic_system(None)


# ============================================
# Root & Health Endpoints
# ============================================

class TestRootEndpoints:
    """Test root and health endpoints"""

    def test_root_endpoint(self):
        """Test GET /"""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "operational"
        assert "version" in data

    def test_health_check(self, system):
        """Test GET /health"""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["systemStatus"] == "STOPPED"

    def test_health_without_system(self):
        """Test GET /health before initialization"""
        set_traffic_system(None)

        response = client.get("/health")

        assert response.json()["systemStatus"] == "NOT_INITIALIZED"

    def test_endpoints_unavailable_without_system(self):
        """Test data endpoints return 503 before initialization"""
        set_traffic_system(None)

        response = client.get("/api/signals")

        assert response.status_code == 503


# ============================================
# Signal Endpoints
# ============================================

class TestSignalEndpoints:
    """Test signal state endpoints"""

    def test_list_signals(self, system):
        """Test GET /api/signals"""
        response = client.get("/api/signals")
        assert response.status_code == 200
        data = response.json()
        assert [s["intersectionId"] for s in data] == ["A", "B"]
        assert all(s["phase"] == "RED" for s in data)

    def test_get_signal(self, system):
        """Test GET /api/signals/{id}"""
        system.set_emergency_override("B", True)

        response = client.get("/api/signals/B")

        assert response.status_code == 200
        data = response.json()
        assert data["phase"] == "GREEN"
        assert data["emergencyOverride"] is True

    def test_get_unknown_signal(self, system):
        """Test GET /api/signals/{id} for an unknown intersection"""
        response = client.get("/api/signals/Z")
        assert response.status_code == 404


# ============================================
# Reporting Endpoints
# ============================================

class TestReportEndpoints:
    """Test report and analytics endpoints"""

    def test_get_report(self, system):
        """Test GET /api/report"""
        response = client.get("/api/report")
        assert response.status_code == 200
        data = response.json()
        assert data["totals"]["intersectionsMonitored"] == 2
        assert data["totals"]["totalVehicles"] == 13
        assert data["totals"]["totalTrainingSnapshots"] == 2
        assert set(data["predictions"]) == {"A", "B"}
        assert data["hotspots"][0]["intersectionId"] == "B"

    def test_report_does_not_touch_signals(self, system):
        """Test building a report leaves controllers unchanged"""
        before = {i: s.to_dict() for i, s in system.get_signal_states().items()}

        client.get("/api/report")

        after = {i: s.to_dict() for i, s in system.get_signal_states().items()}
        assert before == after

    def test_get_hotspots(self, system):
        """Test GET /api/hotspots"""
        response = client.get("/api/hotspots?limit=1")
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0] == {"intersectionId": "B", "vehicleCount": 9, "avgSpeed": 30.0}

    def test_get_hotspots_invalid_limit(self, system):
        """Test limit must be positive"""
        response = client.get("/api/hotspots?limit=0")
        assert response.status_code == 422

    def test_get_prediction(self, system):
        """Test GET /api/predictions/{id}"""
        response = client.get("/api/predictions/A?hoursAhead=2")
        assert response.status_code == 200
        data = response.json()
        assert data["intersectionId"] == "A"
        assert data["predictedCongestion"] == 50.0
        assert data["category"] == "MODERATE"

    def test_get_prediction_is_not_counted(self, system):
        """Test querying a prediction leaves predictor statistics unchanged"""
        client.get("/api/predictions/A")
        client.get("/api/report")

        assert system.predictor.get_statistics()['totalPredictions'] == 0

    def test_get_recommendations(self, system):
        """Test GET /api/recommendations/{id}"""
        response = client.get("/api/recommendations/A")
        assert response.status_code == 200
        data = response.json()
        assert "Dominant traffic flow direction: W" in data["recommendations"]

    def test_recommendations_without_history(self, system):
        """Test recommendations for an intersection with no data"""
        response = client.get("/api/recommendations/Z")
        assert response.json()["recommendations"] == [INSUFFICIENT_DATA]

    def test_get_statistics(self, system):
        """Test GET /api/statistics"""
        response = client.get("/api/statistics")
        assert response.status_code == 200
        data = response.json()
        assert data["system"]["intersections"] == ["A", "B"]
        assert data["predictor"]["totalSnapshots"] == 2
        assert data["analytics"]["totalVehicles"] == 13
