"""
Reporting Module

Read-only query surface over the control loop: running analytics counters
and periodic human-readable reports.
"""

from signal_control.reporting.analytics import TrafficAnalytics, IntersectionTotals
from signal_control.reporting.traffic_report import (
    TrafficReport,
    TrafficReporter,
    HotspotEntry,
    ReportTotals
)


__all__ = [
    'TrafficAnalytics',
    'IntersectionTotals',
    'TrafficReport',
    'TrafficReporter',
    'HotspotEntry',
    'ReportTotals',
]
