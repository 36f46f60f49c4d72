"""
Density Module

Congestion aggregation: raw vehicle batches in, TrafficSnapshots out.

Usage:
    from signal_control.density import CongestionAggregator

    aggregator = CongestionAggregator(config.get_traffic_config())
    snapshot = aggregator.aggregate("Main_St_1st_Ave", vehicles)
"""

from signal_control.density.congestion_aggregator import CongestionAggregator


__all__ = [
    'CongestionAggregator',
]
