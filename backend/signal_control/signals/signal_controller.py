"""
Signal Controller - Per-Intersection State Machine

Drives one intersection's signal through RED -> GREEN -> YELLOW -> RED with
adaptive green/red durations and an emergency override that pins the
signal at GREEN.

Transition rules (checked once per tick):
- GREEN -> YELLOW when elapsed >= green duration
- YELLOW -> RED when elapsed >= yellow duration (fixed 3s)
- RED -> GREEN when elapsed >= red duration

All mutations hold the controller's lock, so tick, adapt and override
changes for one intersection never interleave.
"""

import threading
import time
from collections import deque
from typing import Callable, Optional

from signal_control.models import (
    CongestionCategory,
    PredictionResult,
    SignalPhase,
    SignalState,
)


class SignalController:
    """
    Adaptive signal state machine for one intersection

    Usage:
        controller = SignalController("Main_St_1st_Ave")
        controller.tick()
        controller.adapt(vehicle_count=12, avg_speed=28.0, prediction=prediction)
        controller.set_emergency_override(True)
    """

    # Phase cycle
    NEXT_PHASE = {
        SignalPhase.GREEN: SignalPhase.YELLOW,
        SignalPhase.YELLOW: SignalPhase.RED,
        SignalPhase.RED: SignalPhase.GREEN,
    }

    # Bounds used when a LOW prediction relaxes the cycle
    LOW_PREDICTION_GREEN_FLOOR = 20
    LOW_PREDICTION_RED_CAP = 45

    def __init__(self,
                 intersection_id: str,
                 config: dict = None,
                 clock: Optional[Callable[[], float]] = None):
        """
        Initialize signal controller

        Args:
            intersection_id: Intersection this signal belongs to
            config: Signal configuration dictionary (config/signals.yaml)
            clock: Monotonic clock in seconds (default: time.monotonic)
        """
        self.intersection_id = intersection_id
        self.config = config or {}
        self.clock = clock or time.monotonic

        # Duration bounds
        self.yellow_duration = self.config.get('yellowDuration', 3)
        self.min_green = self.config.get('minGreenDuration', 15)
        self.max_green = self.config.get('maxGreenDuration', 90)
        self.min_red = self.config.get('minRedDuration', 20)
        self.max_red = self.config.get('maxRedDuration', 60)

        # Adaptive thresholds
        adaptive = self.config.get('adaptive', {})
        self.high_count_threshold = adaptive.get('highCountThreshold', 10)
        self.low_count_threshold = adaptive.get('lowCountThreshold', 3)
        self.count_green_cap = adaptive.get('countGreenCap', 60)
        self.slow_speed_threshold = adaptive.get('slowSpeedThreshold', 20.0)

        # State
        self._phase = SignalPhase.RED
        self._green_duration = self._clamp(
            self.config.get('initialGreenDuration', 30), self.min_green, self.max_green
        )
        self._red_duration = self._clamp(
            self.config.get('initialRedDuration', 30), self.min_red, self.max_red
        )
        self._last_change = self.clock()
        self._emergency_override = False
        self._upcoming_prediction: Optional[PredictionResult] = None

        self._lock = threading.Lock()

        # Statistics
        self.transition_count = 0
        self.adaptations = 0
        self.transition_history = deque(maxlen=50)

    @staticmethod
    def _clamp(value: int, low: int, high: int) -> int:
        return max(low, min(high, value))

    def _phase_duration(self, phase: SignalPhase) -> int:
        if phase == SignalPhase.GREEN:
            return self._green_duration
        if phase == SignalPhase.YELLOW:
            return self.yellow_duration
        return self._red_duration

    # ============================================
    # State machine
    # ============================================

    def tick(self) -> SignalPhase:
        """
        Advance the phase if its duration has elapsed

        No-op while emergency override is active.

        Returns:
            Current phase after the tick
        """
        with self._lock:
            if self._emergency_override:
                return self._phase

            now = self.clock()
            elapsed = now - self._last_change

            if elapsed >= self._phase_duration(self._phase):
                self._transition(self.NEXT_PHASE[self._phase], now, "timer")

            return self._phase

    def _transition(self, new_phase: SignalPhase, now: float, reason: str):
        """Change phase and reset the timer (caller holds the lock)"""
        self.transition_history.append({
            'from': self._phase.value,
            'to': new_phase.value,
            'timestamp': now,
            'reason': reason
        })
        self._phase = new_phase
        self._last_change = now
        self.transition_count += 1

    def set_emergency_override(self, active: bool):
        """
        Activate or clear the emergency override

        Activating forces GREEN and resets the timer; when already GREEN only
        the timer is reset. Clearing leaves the phase alone; normal ticking
        resumes from it.

        Args:
            active: True to activate, False to clear
        """
        with self._lock:
            self._emergency_override = active
            if not active:
                return

            now = self.clock()
            if self._phase == SignalPhase.GREEN:
                self._last_change = now
            else:
                self._transition(SignalPhase.GREEN, now, "emergency")

    # ============================================
    # Adaptive timing
    # ============================================

    def adapt(self,
              vehicle_count: int,
              avg_speed: float,
              prediction: Optional[PredictionResult] = None):
        """
        Adjust green/red durations from live counts and a prediction

        Applied every detection cycle on top of the current durations,
        in this order:
        1. count > 10: green += 10 (cap 60); count < 3: green -= 5 (floor 15)
        2. avg_speed < 20: green += 5
        3. HIGH prediction: green = min(90, green + 15), red = max(20, red - 5)
           LOW prediction: green = max(20, green - 10), red = min(45, red + 5)

        Args:
            vehicle_count: Vehicles detected this cycle
            avg_speed: Average speed at the intersection (km/h)
            prediction: Upcoming congestion prediction (optional)
        """
        with self._lock:
            green = self._green_duration
            red = self._red_duration

            if vehicle_count > self.high_count_threshold:
                green = min(self.count_green_cap, green + 10)
            elif vehicle_count < self.low_count_threshold:
                green = max(self.min_green, green - 5)

            if avg_speed < self.slow_speed_threshold:
                green += 5

            if prediction is not None:
                self._upcoming_prediction = prediction

                if prediction.category == CongestionCategory.HIGH:
                    green = min(self.max_green, green + 15)
                    red = max(self.min_red, red - 5)
                elif prediction.category == CongestionCategory.LOW:
                    green = max(self.LOW_PREDICTION_GREEN_FLOOR, green - 10)
                    red = min(self.LOW_PREDICTION_RED_CAP, red + 5)

            self._green_duration = self._clamp(green, self.min_green, self.max_green)
            self._red_duration = self._clamp(red, self.min_red, self.max_red)
            self.adaptations += 1

    # ============================================
    # Read accessors
    # ============================================

    @property
    def phase(self) -> SignalPhase:
        return self._phase

    @property
    def green_duration(self) -> int:
        return self._green_duration

    @property
    def red_duration(self) -> int:
        return self._red_duration

    @property
    def emergency_override(self) -> bool:
        return self._emergency_override

    @property
    def upcoming_prediction(self) -> Optional[PredictionResult]:
        return self._upcoming_prediction

    def get_state(self) -> SignalState:
        """Consistent snapshot of the controller state"""
        with self._lock:
            return SignalState(
                intersection_id=self.intersection_id,
                phase=self._phase,
                green_duration=self._green_duration,
                red_duration=self._red_duration,
                yellow_duration=self.yellow_duration,
                last_change=self._last_change,
                emergency_override=self._emergency_override,
                upcoming_prediction=self._upcoming_prediction
            )

    def seconds_in_phase(self) -> float:
        """Seconds elapsed since the last phase change"""
        with self._lock:
            return self.clock() - self._last_change

    def status_line(self, vehicle_count: int) -> str:
        """One-line console status for a detection cycle"""
        state = self.get_state()

        line = (f"[{state.phase.value}] {self.intersection_id}: {state.phase.value} "
                f"({state.green_duration}s) - {vehicle_count} vehicles")
        if state.emergency_override:
            line += " [EMERGENCY]"
        if state.upcoming_prediction is not None:
            line += f" [PRED: {state.upcoming_prediction.category.value}]"
        return line

    def get_transition_history(self, limit: int = 10) -> list:
        """Get recent phase transitions"""
        with self._lock:
            return list(self.transition_history)[-limit:]
