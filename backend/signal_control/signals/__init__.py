"""
Signal Control Module

Per-intersection signal state machines with adaptive timing and
emergency override.
"""

from signal_control.signals.signal_controller import SignalController


__all__ = [
    'SignalController',
]
