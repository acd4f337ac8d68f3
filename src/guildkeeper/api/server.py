"""
Runs the dashboard API on the bot's event loop.

uvicorn is driven through ``Server.serve()`` instead of ``uvicorn.run`` so the
API shares the loop (and therefore the aiosqlite connection) with py-cord.
"""
from __future__ import annotations

import asyncio
from typing import Optional

import uvicorn
from fastapi import FastAPI

from guildkeeper.util.logger import get_logger

logger = get_logger("api_server")


class ApiServer:
    """Start and stop a uvicorn server as a background task."""

    def __init__(self, app: FastAPI, host: str, port: int) -> None:
        self.host = host
        self.port = port
        # log_config=None keeps uvicorn from replacing our logging handlers
        self._server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_config=None, lifespan="off"))
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task  # type: ignore[return-value]
        logger.info("[API SERVER] Serving dashboard API on http://%s:%s", self.host, self.port)
        self._task = asyncio.create_task(self._server.serve(), name="dashboard-api")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._server.should_exit = True
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("[API SERVER] Dashboard API stopped with an error")
        finally:
            self._task = None
        logger.info("[API SERVER] Dashboard API stopped")
