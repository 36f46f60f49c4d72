"""
Traffic Management System - Orchestrator

Owns the fixed set of intersections and runs three independent periodic
activities on the event loop:
1. TICK - advance every signal state machine (short period)
2. DETECT & ADAPT - read sensors, aggregate, train, route emergencies,
   predict and adapt signal timing (longer period)
3. REPORT - build and print a read-only summary

Sensor reads run on a fixed-size thread pool. A failing cycle is logged
and counted; it never prevents later cycles of any activity.
"""

import asyncio
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from signal_control.config import ConfigManager
from signal_control.density import CongestionAggregator
from signal_control.emergency import EmergencyOverrideCoordinator
from signal_control.models import SignalPhase, SignalState, TrafficSnapshot, VehicleObservation
from signal_control.prediction import PatternPredictor
from signal_control.reporting import TrafficAnalytics, TrafficReport, TrafficReporter
from signal_control.signals import SignalController
from signal_control.simulation import SensorFeed, SimulatedSensorFeed


DEFAULT_INTERSECTIONS = [
    "Main_St_1st_Ave",
    "Oak_St_2nd_Ave",
    "Pine_St_3rd_Ave",
    "Elm_St_4th_Ave",
]


class SystemStatus(str, Enum):
    """Orchestrator operational status"""
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"


@dataclass
class SystemStatistics:
    """Orchestrator cycle statistics"""
    tick_cycles: int = 0
    detection_cycles: int = 0
    report_cycles: int = 0
    errors_count: int = 0
    sensor_failures: int = 0
    last_detection_latency: float = 0.0   # ms
    start_time: float = field(default_factory=time.time)

    def reset(self):
        """Reset statistics"""
        self.tick_cycles = 0
        self.detection_cycles = 0
        self.report_cycles = 0
        self.errors_count = 0
        self.sensor_failures = 0
        self.last_detection_latency = 0.0
        self.start_time = time.time()


class TrafficManagementSystem:
    """
    Adaptive signal control across many intersections

    Usage:
        system = TrafficManagementSystem.from_config(get_config())
        await system.start()

        # Later...
        await system.stop()
    """

    def __init__(self,
                 config: dict = None,
                 sensor_feed: Optional[SensorFeed] = None,
                 predictor: Optional[PatternPredictor] = None,
                 aggregator: Optional[CongestionAggregator] = None,
                 signal_config: dict = None,
                 emergency_config: dict = None,
                 clock: Optional[Callable[[], float]] = None):
        """
        Initialize the traffic management system

        Args:
            config: System configuration dictionary (config/system.yaml)
            sensor_feed: Vehicle sensor feed (default: SimulatedSensorFeed)
            predictor: Pattern predictor (default: new PatternPredictor)
            aggregator: Congestion aggregator (default: new CongestionAggregator)
            signal_config: Signal controller configuration
            emergency_config: Emergency override configuration
            clock: Monotonic clock shared by all signal controllers
        """
        self.config = config or {}

        # Scheduling
        self.tick_interval = self.config.get('tickInterval', 2.0)
        self.detection_interval = self.config.get('detectionInterval', 5.0)
        self.report_interval = self.config.get('reportInterval', 45.0)
        self.report_initial_delay = self.config.get('reportInitialDelay', self.report_interval)
        self.worker_pool_size = self.config.get('workerPoolSize', 4)
        self.prediction_horizon = self.config.get('predictionHorizonHours', 1)
        self.hotspot_limit = self.config.get('hotspotLimit', 5)

        for name in ('tick_interval', 'detection_interval', 'report_interval', 'worker_pool_size'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive: {getattr(self, name)}")

        intersections = self.config.get('intersections') or DEFAULT_INTERSECTIONS
        if len(set(intersections)) != len(intersections):
            raise ValueError(f"Duplicate intersection IDs: {intersections}")

        # Components
        self.sensor_feed = sensor_feed or SimulatedSensorFeed()
        self.aggregator = aggregator or CongestionAggregator()
        self.predictor = predictor or PatternPredictor()
        self.analytics = TrafficAnalytics()
        self.reporter = TrafficReporter(
            self.analytics,
            self.predictor,
            hotspot_limit=self.hotspot_limit,
            horizon_hours=self.prediction_horizon
        )

        self.controllers: Dict[str, SignalController] = {
            intersection_id: SignalController(intersection_id, signal_config, clock=clock)
            for intersection_id in intersections
        }
        self.coordinator = EmergencyOverrideCoordinator(self.controllers.get, emergency_config)

        # State
        self.status = SystemStatus.STOPPED
        self.stats = SystemStatistics()

        # Control
        self._tasks: List[asyncio.Task] = []
        self._executor: Optional[ThreadPoolExecutor] = None

        print(f"[SYSTEM] Traffic Management System initialized with {len(self.controllers)} intersections")

    @classmethod
    def from_config(cls,
                    cfg: ConfigManager,
                    sensor_feed: Optional[SensorFeed] = None) -> "TrafficManagementSystem":
        """Build a system with every component configured from a ConfigManager"""
        return cls(
            config=cfg.get_system_config(),
            sensor_feed=sensor_feed,
            predictor=PatternPredictor(cfg.get_prediction_config()),
            aggregator=CongestionAggregator(cfg.get_traffic_config()),
            signal_config=cfg.get_signal_config(),
            emergency_config=cfg.get_emergency_config()
        )

    # ============================================
    # Lifecycle
    # ============================================

    async def start(self):
        """Start the three periodic activities"""
        if self.status == SystemStatus.RUNNING:
            print("[WARN] System already running")
            return

        print("[SYSTEM] Starting Adaptive Signal Control System...")

        self.status = SystemStatus.RUNNING
        self.stats.reset()
        self._executor = ThreadPoolExecutor(
            max_workers=self.worker_pool_size,
            thread_name_prefix="sensor"
        )

        self._tasks = [
            asyncio.create_task(self._run_periodic("tick", self.tick_interval, self.tick_signals)),
            asyncio.create_task(self._run_periodic("detect", self.detection_interval, self.detect_and_adapt)),
            asyncio.create_task(self._run_periodic(
                "report", self.report_interval, self.generate_report, self.report_initial_delay
            )),
        ]

        print(f"[START] tick={self.tick_interval}s detect={self.detection_interval}s "
              f"report={self.report_interval}s workers={self.worker_pool_size}")

    async def stop(self):
        """Stop all activities and abandon pending emergency releases"""
        if self.status == SystemStatus.STOPPED:
            return

        print("[STOP] Stopping traffic management system...")
        self.status = SystemStatus.STOPPED

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        await self.coordinator.shutdown()

        if self._executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

        print("[OK] Traffic management system shutdown complete")

    async def _run_periodic(self,
                            name: str,
                            interval: float,
                            action: Callable,
                            initial_delay: float = 0.0):
        """
        Run an activity at a fixed rate until stopped

        Exceptions are logged and counted; the next cycle still runs.
        """
        loop = asyncio.get_running_loop()

        if initial_delay > 0:
            await asyncio.sleep(initial_delay)

        while self.status == SystemStatus.RUNNING:
            started = loop.time()

            try:
                result = action()
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                print(f"[ERROR] {name} cycle error: {e}")
                self.stats.errors_count += 1

            await asyncio.sleep(max(0.0, interval - (loop.time() - started)))

    # ============================================
    # Activities
    # ============================================

    def tick_signals(self) -> Dict[str, SignalPhase]:
        """Advance every signal state machine once"""
        phases = {
            intersection_id: controller.tick()
            for intersection_id, controller in self.controllers.items()
        }
        self.stats.tick_cycles += 1
        return phases

    async def detect_and_adapt(self) -> Dict[str, TrafficSnapshot]:
        """
        Run one detect-and-adapt cycle across all intersections

        Intersections are processed concurrently; one intersection failing
        does not affect the others.
        """
        start_time = time.time()
        intersection_ids = list(self.controllers.keys())

        results = await asyncio.gather(
            *(self.process_intersection(i) for i in intersection_ids),
            return_exceptions=True
        )

        snapshots = {}
        for intersection_id, result in zip(intersection_ids, results):
            if isinstance(result, Exception):
                print(f"[ERROR] Detection cycle failed for {intersection_id}: {result}")
                self.stats.errors_count += 1
            else:
                snapshots[intersection_id] = result

        self.stats.detection_cycles += 1
        self.stats.last_detection_latency = (time.time() - start_time) * 1000

        return snapshots

    async def process_intersection(self, intersection_id: str) -> Optional[TrafficSnapshot]:
        """
        Detect, aggregate, train, route emergencies, predict and adapt

        Intersections outside the managed set are a no-op: no sensor read,
        nothing recorded.

        Args:
            intersection_id: Intersection to process

        Returns:
            The snapshot recorded for this cycle (None for unknown intersections)
        """
        controller = self.controllers.get(intersection_id)
        if controller is None:
            print(f"[WARN] Ignoring unknown intersection: {intersection_id}")
            return None

        vehicles = await self._read_sensor(intersection_id)

        snapshot = self.aggregator.aggregate(intersection_id, vehicles)
        self.analytics.record_batch(intersection_id, vehicles)
        self.predictor.record(intersection_id, snapshot)

        for vehicle in vehicles:
            if vehicle.is_emergency:
                await self.coordinator.handle_emergency_vehicle(vehicle)

        avg_speed = self.analytics.get_average_speed(intersection_id)
        prediction = self.predictor.predict(intersection_id, self.prediction_horizon)
        controller.adapt(len(vehicles), avg_speed, prediction)
        print(f"[SIGNAL] {controller.status_line(len(vehicles))}")

        return snapshot

    async def _read_sensor(self, intersection_id: str) -> List[VehicleObservation]:
        """Read one batch from the sensor feed; failures read as an empty batch"""
        loop = asyncio.get_running_loop()

        try:
            return await asyncio.wait_for(
                loop.run_in_executor(self._executor, self.sensor_feed.detect, intersection_id),
                timeout=self.detection_interval
            )
        except asyncio.TimeoutError:
            print(f"[WARN] Sensor read timed out for {intersection_id}")
        except Exception as e:
            print(f"[WARN] Sensor read failed for {intersection_id}: {e}")

        self.stats.sensor_failures += 1
        return []

    def generate_report(self) -> TrafficReport:
        """Build and print a read-only traffic report"""
        report = self.reporter.build_report()
        print(self.reporter.format_report(report))
        self.stats.report_cycles += 1
        return report

    # ============================================
    # Controller access
    # ============================================

    def set_emergency_override(self, intersection_id: str, active: bool) -> bool:
        """
        Set or clear an intersection's override directly

        Returns:
            False for unknown intersections (no-op)
        """
        controller = self.controllers.get(intersection_id)
        if controller is None:
            return False
        controller.set_emergency_override(active)
        return True

    def get_controller(self, intersection_id: str) -> Optional[SignalController]:
        """Get an intersection's controller"""
        return self.controllers.get(intersection_id)

    def get_signal_states(self) -> Dict[str, SignalState]:
        """Snapshot of every signal"""
        return {
            intersection_id: controller.get_state()
            for intersection_id, controller in self.controllers.items()
        }

    def get_statistics(self) -> dict:
        """Get orchestrator statistics"""
        uptime = time.time() - self.stats.start_time if self.status == SystemStatus.RUNNING else 0

        return {
            "status": self.status.value,
            "intersections": list(self.controllers.keys()),
            "tickCycles": self.stats.tick_cycles,
            "detectionCycles": self.stats.detection_cycles,
            "reportCycles": self.stats.report_cycles,
            "errorsCount": self.stats.errors_count,
            "sensorFailures": self.stats.sensor_failures,
            "lastDetectionLatency": round(self.stats.last_detection_latency, 2),
            "uptime": round(uptime, 2),
            "intersectionsMonitored": self.analytics.intersections_monitored,
            "totalVehicles": self.analytics.total_vehicles,
            "totalTrainingSnapshots": self.predictor.total_snapshots(),
            "emergency": self.coordinator.get_statistics()
        }


# Global traffic system instance
_traffic_system: Optional[TrafficManagementSystem] = None


def get_traffic_system() -> Optional[TrafficManagementSystem]:
    """Get the global traffic system instance"""
    return _traffic_system


def init_traffic_system(cfg: ConfigManager, sensor_feed: Optional[SensorFeed] = None) -> TrafficManagementSystem:
    """Initialize the global traffic system from configuration"""
    global _traffic_system
    _traffic_system = TrafficManagementSystem.from_config(cfg, sensor_feed)
    return _traffic_system


def set_traffic_system(system: Optional[TrafficManagementSystem]):
    """Set the global traffic system instance"""
    global _traffic_system
    _traffic_system = system
