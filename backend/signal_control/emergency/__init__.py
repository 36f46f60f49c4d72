"""
Emergency Override System

Emergency vehicle priority: forced GREEN with timed automatic release.

Components:
- EmergencyOverrideCoordinator: Activate overrides and schedule releases
"""

from .override_coordinator import EmergencyOverrideCoordinator


__all__ = [
    "EmergencyOverrideCoordinator",
]
