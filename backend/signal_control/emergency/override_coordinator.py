"""
Emergency Override Coordinator

Forces an intersection's signal to GREEN when an emergency vehicle is
detected there and schedules the automatic release of that override.

Overlapping emergencies on one intersection follow a latest-wins rule:
a new emergency cancels the pending release and schedules a fresh one, so
the override is held until the release delay has passed since the most
recent emergency.
"""

import asyncio
import time
from typing import Callable, Dict, Optional

from signal_control.models import VehicleObservation
from signal_control.signals import SignalController


class EmergencyOverrideCoordinator:
    """
    Activate and release emergency signal overrides

    Responsibilities:
    - Force the owning intersection's signal to GREEN immediately
    - Schedule a one-shot release after the release delay
    - Supersede a pending release when another emergency arrives
    - Abandon pending releases at shutdown

    Usage:
        coordinator = EmergencyOverrideCoordinator(controllers.get)
        await coordinator.handle_emergency_vehicle(observation)
        ...
        await coordinator.shutdown()
    """

    def __init__(self,
                 controller_lookup: Callable[[str], Optional[SignalController]],
                 config: dict = None):
        """
        Initialize override coordinator

        Args:
            controller_lookup: Returns the SignalController for an intersection ID
                (None for unknown intersections)
            config: Emergency configuration dictionary (config/emergency.yaml)
        """
        self.controller_lookup = controller_lookup
        self.config = config or {}

        self.release_delay = self.config.get('releaseDelay', 30.0)  # seconds
        if self.release_delay < 0:
            raise ValueError(f"releaseDelay must be non-negative: {self.release_delay}")

        # intersection_id -> pending release task
        self._pending: Dict[str, asyncio.Task] = {}
        # intersection_id -> time the override was last (re)armed
        self._activated_at: Dict[str, float] = {}

        # Statistics
        self.emergencies_handled = 0
        self.releases_fired = 0
        self.releases_superseded = 0

        print("[OK] Emergency Override Coordinator initialized")
        print(f"   Release delay: {self.release_delay}s")

    async def handle_emergency_vehicle(self, vehicle: VehicleObservation) -> bool:
        """
        Override the signal for an emergency vehicle

        Must be called from the running event loop.

        Args:
            vehicle: Detected vehicle (non-emergency vehicles are ignored)

        Returns:
            True if an override was activated
        """
        if not vehicle.is_emergency:
            return False

        intersection_id = vehicle.intersection_id
        controller = self.controller_lookup(intersection_id)
        if controller is None:
            print(f"[WARN] Emergency at unknown intersection ignored: {intersection_id}")
            return False

        print(f"*** EMERGENCY VEHICLE DETECTED: {vehicle.vehicle_id} at {intersection_id}")

        controller.set_emergency_override(True)
        self.emergencies_handled += 1
        self._activated_at[intersection_id] = time.time()

        previous = self._pending.get(intersection_id)
        if previous is not None and not previous.done():
            previous.cancel()
            self.releases_superseded += 1

        self._pending[intersection_id] = asyncio.create_task(
            self._release_after(intersection_id, self.release_delay)
        )
        return True

    async def _release_after(self, intersection_id: str, delay: float):
        """Clear the override once the delay elapses"""
        await asyncio.sleep(delay)

        controller = self.controller_lookup(intersection_id)
        if controller is not None:
            controller.set_emergency_override(False)

        if self._pending.get(intersection_id) is asyncio.current_task():
            del self._pending[intersection_id]
        self._activated_at.pop(intersection_id, None)
        self.releases_fired += 1

        print(f">>> Emergency override cleared for {intersection_id}")

    def is_override_pending(self, intersection_id: str) -> bool:
        """Whether a release is scheduled for an intersection"""
        task = self._pending.get(intersection_id)
        return task is not None and not task.done()

    def pending_releases(self) -> Dict[str, float]:
        """Intersections with a pending release -> seconds until release"""
        now = time.time()
        return {
            intersection_id: max(0.0, self._activated_at.get(intersection_id, now) + self.release_delay - now)
            for intersection_id, task in self._pending.items()
            if not task.done()
        }

    async def shutdown(self):
        """Abandon all pending releases"""
        tasks = [task for task in self._pending.values() if not task.done()]
        for task in tasks:
            task.cancel()

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            print(f"[EMERGENCY] Abandoned {len(tasks)} pending override release(s)")

        self._pending.clear()
        self._activated_at.clear()

    def get_statistics(self) -> dict:
        """Get coordinator statistics"""
        return {
            'emergenciesHandled': self.emergencies_handled,
            'releasesFired': self.releases_fired,
            'releasesSuperseded': self.releases_superseded,
            'pendingReleases': len(self.pending_releases()),
            'releaseDelay': self.release_delay
        }
