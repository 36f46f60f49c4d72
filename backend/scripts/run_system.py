#!/usr/bin/env python
"""
Traffic System Runner

Runs the adaptive signal control loop with the simulated sensor feed.
Run from backend directory: python scripts/run_system.py

Options:
    --duration     Seconds to run before shutting down (default: 120)
    --seed         Seed for simulated traffic and prediction noise
    --config-dir   Configuration directory (default: backend/config)
    --serve        Serve the HTTP query surface with uvicorn instead
"""

import sys
import os
import argparse
import asyncio

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


async def run_for(duration: float, seed, config_dir):
    """Start the system, let it run, then shut it down"""
    import numpy as np

    from signal_control.config import init_config
    from signal_control.density import CongestionAggregator
    from signal_control.orchestrator import TrafficManagementSystem, set_traffic_system
    from signal_control.prediction import PatternPredictor
    from signal_control.simulation import SimulatedSensorFeed

    cfg = init_config(config_dir)

    system = TrafficManagementSystem(
        config=cfg.get_system_config(),
        sensor_feed=SimulatedSensorFeed(seed=seed),
        predictor=PatternPredictor(cfg.get_prediction_config(), rng=np.random.default_rng(seed)),
        aggregator=CongestionAggregator(cfg.get_traffic_config()),
        signal_config=cfg.get_signal_config(),
        emergency_config=cfg.get_emergency_config()
    )
    set_traffic_system(system)

    await system.start()
    try:
        await asyncio.sleep(duration)
    finally:
        await system.stop()


def main():
    parser = argparse.ArgumentParser(description='Run the Adaptive Signal Control System')
    parser.add_argument('--duration', type=float, default=120.0, help='Seconds to run (default: 120)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--config-dir', default=None, help='Configuration directory')
    parser.add_argument('--serve', action='store_true', help='Serve the HTTP API with uvicorn')
    parser.add_argument('--port', type=int, default=8000, help='HTTP port for --serve')
    args = parser.parse_args()

    if args.duration <= 0:
        parser.error("--duration must be positive")

    print("=" * 60)
    print("ADAPTIVE SIGNAL CONTROL SYSTEM")
    print("=" * 60)

    if args.serve:
        import uvicorn

        if args.config_dir:
            os.environ["SIGNAL_CONTROL_CONFIG_DIR"] = args.config_dir

        uvicorn.run("signal_control.main:app", host="0.0.0.0", port=args.port, log_level="info")
        return

    print(f"Duration: {args.duration:.0f}s")
    print("=" * 60)

    try:
        asyncio.run(run_for(args.duration, args.seed, args.config_dir))
    except KeyboardInterrupt:
        print("\n[STOP] Interrupted")


if __name__ == "__main__":
    main()
