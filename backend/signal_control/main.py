"""
Adaptive Signal Control System
Main FastAPI Application Entry Point

Starts the traffic management system for the lifetime of the server and
exposes its read-only query surface.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from signal_control import __version__
from signal_control.api import report_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events - startup and shutdown"""
    print("=" * 60)
    print("[STARTUP] Adaptive Signal Control System")
    print("=" * 60)

    from signal_control.config import get_config
    from signal_control.orchestrator import get_traffic_system, init_traffic_system

    cfg = get_config()
    print("[OK] Configuration loaded")

    system = get_traffic_system()
    if system is None:
        system = init_traffic_system(cfg)
    await system.start()
    print("[OK] Traffic management system started")

    yield

    # Shutdown
    await system.stop()
    print("[SHUTDOWN] Server stopped")


app = FastAPI(
    title="Adaptive Signal Control System",
    description="Adaptive intersection signal timing with pattern-based prediction "
                "and emergency vehicle overrides",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(report_router)


@app.get("/", tags=["system"])
async def root():
    """Service information"""
    return {
        "name": "Adaptive Signal Control System",
        "version": __version__,
        "status": "operational",
        "docs": "/docs"
    }


@app.get("/health", tags=["system"])
async def health_check():
    """Health check"""
    from signal_control.orchestrator import get_traffic_system

    system = get_traffic_system()
    return {
        "status": "healthy",
        "systemStatus": system.status.value if system else "NOT_INITIALIZED",
        "timestamp": time.time()
    }


# ============================================
# Entry Point
# ============================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "signal_control.main:app",
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
