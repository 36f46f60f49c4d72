"""
Orchestrator Module

Scheduler that drives signal ticking, detect-and-adapt cycles and
reporting across all intersections.

Usage:
    from signal_control.orchestrator import init_traffic_system

    system = init_traffic_system(get_config())
    await system.start()
    ...
    await system.stop()
"""

from signal_control.orchestrator.traffic_manager import (
    TrafficManagementSystem,
    SystemStatus,
    SystemStatistics,
    DEFAULT_INTERSECTIONS,
    get_traffic_system,
    init_traffic_system,
    set_traffic_system
)


__all__ = [
    'TrafficManagementSystem',
    'SystemStatus',
    'SystemStatistics',
    'DEFAULT_INTERSECTIONS',
    'get_traffic_system',
    'init_traffic_system',
    'set_traffic_system'
]
