"""
ModelHandle — lazily loaded classifier resource shared by every caller.

    unloaded ──trigger()──▶ loading ──▶ loaded
                                   └──▶ failed

loaded / failed are terminal. The first trigger() schedules exactly one
load task; callers that arrive while it is pending await that same task
instead of starting another.
"""
from __future__ import annotations
import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from diarium_mood.errors import ModelUnavailable
from diarium_mood.utils.logging import logger

T = TypeVar("T")


class HandleState(str, Enum):
    UNLOADED = "unloaded"
    LOADING  = "loading"
    LOADED   = "loaded"
    FAILED   = "failed"


class ModelHandle(Generic[T]):
    def __init__(self, name: str, loader: Callable[[], Awaitable[T]]):
        self.name     = name
        self._loader  = loader
        self._state   = HandleState.UNLOADED
        self._resource: Optional[T] = None
        self._error:    Optional[BaseException] = None
        self._task:     Optional[asyncio.Task] = None
        self.load_ms:   Optional[float] = None

    # ── State ─────────────────────────────────────────────────────────────────

    @property
    def state(self) -> HandleState:
        return self._state

    @property
    def resource(self) -> Optional[T]:
        return self._resource

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def trigger(self) -> Optional[asyncio.Task]:
        """
        Start the load if nothing has started it yet. Never blocks.
        Returns the pending task while loading, None once terminal.
        Must be called from a running event loop.
        """
        if self._state in (HandleState.LOADED, HandleState.FAILED):
            return None
        if self._task is not None and not self._task_orphaned():
            return self._task

        # raises RuntimeError outside a loop, before any state changes
        self._task  = asyncio.get_running_loop().create_task(self._run())
        self._state = HandleState.LOADING
        return self._task

    async def get(self) -> T:
        """Await the shared load and return the resource; ModelUnavailable if it failed."""
        task = self.trigger()
        if task is not None:
            await asyncio.shield(task)
        if self._state is HandleState.LOADED:
            return self._resource  # type: ignore[return-value]
        raise ModelUnavailable(f"{self.name}: {self._error}") from self._error

    async def _run(self) -> None:
        t0 = time.time()
        logger.info(f"{self.name}: loading", extra={"tier": self.name, "event": "load_start"})
        try:
            resource = await self._loader()
        except Exception as e:
            self._error = e
            self._state = HandleState.FAILED
            reason = getattr(e, "reason", type(e).__name__)
            logger.warning(
                f"{self.name}: load failed ({e})",
                extra={"tier": self.name, "event": "load_failed", "reason": reason},
            )
        else:
            self._resource = resource
            self._state    = HandleState.LOADED
            logger.info(f"{self.name}: loaded", extra={"tier": self.name, "event": "load_done"})
        finally:
            self.load_ms = round((time.time() - t0) * 1000, 2)
            self._task   = None

    def _task_orphaned(self) -> bool:
        # A pending task from an event loop that has since been closed can
        # never complete; a fresh load is scheduled on the current loop.
        loop = self._task.get_loop()
        return loop.is_closed() or loop is not asyncio.get_running_loop()
