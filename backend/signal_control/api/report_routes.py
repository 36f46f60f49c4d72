"""
Report Routes - Read-only signal and traffic endpoints

Endpoints:
- GET /api/signals - All signal states
- GET /api/signals/{intersection_id} - One signal state
- GET /api/report - Fresh traffic report
- GET /api/hotspots - Busiest intersections
- GET /api/predictions/{intersection_id} - Congestion prediction
- GET /api/recommendations/{intersection_id} - Timing recommendations
- GET /api/statistics - System statistics

None of these endpoints mutate controller or predictor state.
"""

from fastapi import APIRouter, HTTPException, Query
from typing import Any, Dict, List

from signal_control.orchestrator import TrafficManagementSystem, get_traffic_system

router = APIRouter(prefix="/api", tags=["traffic"])


def _require_system() -> TrafficManagementSystem:
    system = get_traffic_system()
    if system is None:
        raise HTTPException(status_code=503, detail="Traffic system not initialized")
    return system


# ============================================
# Signals
# ============================================

@router.get("/signals")
async def list_signals() -> List[Dict[str, Any]]:
    """Get the state of every signal"""
    system = _require_system()
    return [state.to_dict() for state in system.get_signal_states().values()]


@router.get("/signals/{intersection_id}")
async def get_signal(intersection_id: str) -> Dict[str, Any]:
    """Get one intersection's signal state"""
    system = _require_system()
    controller = system.get_controller(intersection_id)
    if controller is None:
        raise HTTPException(status_code=404, detail=f"Intersection not found: {intersection_id}")
    return controller.get_state().to_dict()


# ============================================
# Reporting
# ============================================

@router.get("/report")
async def get_report() -> Dict[str, Any]:
    """Build a fresh traffic report"""
    system = _require_system()
    return system.reporter.build_report().to_dict()


@router.get("/hotspots")
async def get_hotspots(limit: int = Query(5, ge=1, le=100)) -> List[Dict[str, Any]]:
    """Get the busiest intersections by latest vehicle count"""
    system = _require_system()
    analytics = system.analytics
    return [
        {
            'intersectionId': intersection_id,
            'vehicleCount': analytics.get_latest_count(intersection_id),
            'avgSpeed': round(analytics.get_average_speed(intersection_id), 1)
        }
        for intersection_id in analytics.get_congestion_hotspots(limit)
    ]


@router.get("/predictions/{intersection_id}")
async def get_prediction(
    intersection_id: str,
    hours_ahead: int = Query(1, ge=0, le=168, alias="hoursAhead")
) -> Dict[str, Any]:
    """
    Predict congestion for an intersection

    Unknown intersections get the neutral default prediction. Uses the
    reporter's generator and is not counted in predictor statistics.
    """
    system = _require_system()
    prediction = system.predictor.predict(
        intersection_id, hours_ahead, rng=system.reporter.rng, record_stats=False
    )
    return prediction.to_dict()


@router.get("/recommendations/{intersection_id}")
async def get_recommendations(intersection_id: str) -> Dict[str, Any]:
    """Get timing recommendations for an intersection"""
    system = _require_system()
    return {
        'intersectionId': intersection_id,
        'recommendations': system.predictor.recommendations(intersection_id)
    }


@router.get("/statistics")
async def get_statistics() -> Dict[str, Any]:
    """Get orchestrator and predictor statistics"""
    system = _require_system()
    return {
        'system': system.get_statistics(),
        'predictor': system.predictor.get_statistics(),
        'analytics': system.analytics.get_statistics()
    }
