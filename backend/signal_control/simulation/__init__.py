"""
Simulation Module

Pluggable vehicle sensor feeds. The control loop depends only on the
SensorFeed contract; SimulatedSensorFeed is the default implementation.
"""

from signal_control.simulation.sensor_feed import SensorFeed, SimulatedSensorFeed


__all__ = [
    'SensorFeed',
    'SimulatedSensorFeed',
]
