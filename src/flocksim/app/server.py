from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Any, Dict, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World

logger = logging.getLogger(__name__)


class FlockController:
    """
    Host loop for a `World`: steps it once per frame and pushes the newest frame to viewers.

    Viewers only ever need the current agent transforms, so nothing is queued; a viewer
    that falls behind simply receives the next frame.
    """

    def __init__(self, config: SimulationConfig, frame_interval: int = 1):
        self.config = config
        self.world = World(config)
        self.frame_interval = max(1, frame_interval)
        self.running = False
        self.tick = 0
        self.viewers: Set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._run())
        self.running = True

    async def advance(self) -> None:
        async with self._lock:
            self.world.step(self.tick)
            self.tick += 1
        if self.tick % self.frame_interval == 0:
            await self.publish_frame()

    async def reset(self) -> None:
        async with self._lock:
            self.world.reset()
            self.tick = 0
        logger.info("Simulation reset")
        await self.publish_frame()

    async def resize(self, width: float, height: float) -> None:
        async with self._lock:
            self.world.resize(width, height)

    def frame(self) -> Dict[str, Any]:
        snapshot = self.world.snapshot(self.tick)
        return {
            "type": "frame",
            "tick": snapshot.tick,
            "world": asdict(snapshot.world),
            "agents": [
                {key: agent[key] for key in ("id", "role", "x", "y", "vx", "vy", "orientation")}
                for agent in snapshot.agents
            ],
        }

    async def publish_frame(self) -> None:
        if not self.viewers:
            return
        message = json.dumps(self.frame())
        dropped = []
        # Viewers may connect or leave while a send is awaited.
        for viewer in list(self.viewers):
            try:
                await viewer.send_text(message)
            except (WebSocketDisconnect, RuntimeError, ConnectionError) as exc:
                logger.info("Dropping viewer after failed send: %s", exc)
                dropped.append(viewer)
        for viewer in dropped:
            self.viewers.discard(viewer)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step)
            if self.running:
                await self.advance()


app = FastAPI(title="Flocking Simulation")
controller = FlockController(SimulationConfig())


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/api/status")
async def status() -> JSONResponse:
    metrics = controller.world.metrics
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "population": len(controller.world.agents),
            "world": asdict(controller.world.boundary),
            "metrics": None if metrics is None else asdict(metrics),
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    controller.running = True
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    controller.running = False
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/resize")
async def resize_world(payload: dict) -> JSONResponse:
    try:
        await controller.resize(float(payload["width"]), float(payload["height"]))
    except (KeyError, TypeError, ValueError) as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    return JSONResponse(asdict(controller.world.boundary))


@app.websocket("/ws")
async def frames(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.viewers.add(websocket)
    logger.info("Viewer connected (%d total)", len(controller.viewers))
    try:
        await websocket.send_text(json.dumps(controller.frame()))
        while True:
            # Viewers are receive-only; incoming text just keeps the socket alive.
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Viewer disconnected")
    finally:
        controller.viewers.discard(websocket)


__all__ = ["app", "controller"]
