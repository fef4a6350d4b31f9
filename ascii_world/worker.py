"""
Background rendering so callers never block on a slow render.

Requests go to a single-worker executor (a process pool unless one is
injected).  Requests are numbered as they are submitted; a finished render is
handed to the callback only if no newer request has already been delivered.
In-flight renders are never cancelled, their results are simply dropped.
"""

from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import Executor, Future, ProcessPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .config import RenderOptions
from .renderer import PixelSource, render_ascii

logger = logging.getLogger(__name__)

ResultCallback = Callable[[int, Optional[str]], None]


def render_or_none(
    pixels: PixelSource,
    width: int,
    height: int,
    options: Optional[RenderOptions] = None,
) -> Optional[str]:
    """Run ``render_ascii``; log and return ``None`` on failure."""
    try:
        return render_ascii(pixels, width, height, options)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Render failed for %sx%s buffer", width, height)
        return None


@dataclass
class RenderTicket:
    request_id: int
    future: "Future[Optional[str]]"


class RenderWorker:
    """Owns an executor and applies last-request-wins delivery."""

    def __init__(
        self,
        on_result: Optional[ResultCallback] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.on_result = on_result
        self._executor = executor or ProcessPoolExecutor(max_workers=1)
        self._counter = itertools.count(1)
        self._lock = threading.Lock()
        self._delivered_id = 0
        self._delivered_text: Optional[str] = None

    def submit(
        self,
        pixels: PixelSource,
        width: int,
        height: int,
        options: Optional[RenderOptions] = None,
    ) -> RenderTicket:
        request_id = next(self._counter)
        if isinstance(pixels, memoryview):
            # memoryviews cannot be pickled across the process boundary
            pixels = pixels.tobytes()
        future = self._executor.submit(render_or_none, pixels, width, height, options)
        future.add_done_callback(lambda done, rid=request_id: self._deliver(rid, done))
        logger.debug("Submitted render request %d (%sx%s)", request_id, width, height)
        return RenderTicket(request_id=request_id, future=future)

    def _deliver(self, request_id: int, future: "Future[Optional[str]]") -> None:
        try:
            text = future.result()
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Render request %d did not complete: %s", request_id, exc)
            text = None

        with self._lock:
            if request_id <= self._delivered_id:
                logger.debug(
                    "Dropping stale render %d (already showing %d)", request_id, self._delivered_id
                )
                return
            self._delivered_id = request_id
            self._delivered_text = text

        if self.on_result is not None:
            self.on_result(request_id, text)

    @property
    def latest(self) -> Tuple[int, Optional[str]]:
        """Id and text of the newest delivered render (0 before any)."""
        with self._lock:
            return self._delivered_id, self._delivered_text

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "RenderWorker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
