"""
Congestion Prediction Module

Pattern-based congestion prediction: hour-of-day and day-of-week average
congestion tables fitted from each intersection's snapshot history.

Components:
- PatternPredictor: history, table training, prediction, recommendations
- PatternTables: immutable fitted tables for one intersection
"""

from signal_control.prediction.pattern_predictor import (
    PatternPredictor,
    PatternTables,
    INSUFFICIENT_DATA,
    get_pattern_predictor,
    init_pattern_predictor
)


__all__ = [
    'PatternPredictor',
    'PatternTables',
    'INSUFFICIENT_DATA',
    'get_pattern_predictor',
    'init_pattern_predictor'
]
