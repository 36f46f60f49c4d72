"""
Adaptive Signal Control System
Backend Application Package

Adaptive traffic-signal control for a network of intersections: congestion
aggregation, pattern-based prediction, per-intersection signal state machines,
emergency overrides, and the scheduler that drives them.
"""

__version__ = "1.0.0"
