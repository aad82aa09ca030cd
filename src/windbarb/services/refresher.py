from __future__ import annotations

import asyncio
import itertools
import logging
from datetime import datetime
from typing import Any

from windbarb.models import RefreshState
from windbarb.services.wind.constants import UTC
from windbarb.services.wind_service import WindSeriesService

logger = logging.getLogger(__name__)


class WindSeriesRefresher:
    """Re-runs the wind pipeline on a fixed cadence and keeps the latest series.

    Refreshes run as independent tasks and may overlap when the host is slow. Every
    refresh takes a sequence number when it starts; a completion is only displayed
    if no newer refresh has already been displayed, so a slow response can never
    replace fresher data.
    """

    def __init__(
        self,
        service: WindSeriesService,
        interval_seconds: float = 300.0,
        viewport_width: float = 1024,
        overrides: dict[str, Any] | None = None,
    ) -> None:
        self.service = service
        self.interval_seconds = interval_seconds
        self.viewport_width = viewport_width
        self.overrides = overrides
        self._sequence = itertools.count(1)
        self._current = RefreshState(sequence=0)
        self._loop_task: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[RefreshState]] = set()

    @property
    def current(self) -> RefreshState:
        return self._current

    async def refresh_once(self) -> RefreshState:
        sequence = next(self._sequence)
        logger.debug("refresh.start sequence=%s", sequence)
        try:
            series = await self.service.build_series(self.overrides, viewport_width=self.viewport_width)
            state = RefreshState(
                sequence=sequence,
                completed_at_utc=datetime.now(UTC),
                series=series,
                error=series.message,
            )
        except Exception as exc:
            logger.exception("refresh.error sequence=%s", sequence)
            state = RefreshState(
                sequence=sequence,
                completed_at_utc=datetime.now(UTC),
                series=self._current.series,
                error=f"Failed to fetch wind data: {exc}",
            )

        if sequence < self._current.sequence:
            logger.info(
                "refresh.stale sequence=%s displayed=%s; discarding result",
                sequence,
                self._current.sequence,
            )
            return self._current
        self._current = state
        logger.info(
            "refresh.end sequence=%s observations=%s error=%s",
            sequence,
            len(state.series.data) if state.series is not None else 0,
            state.error,
        )
        return state

    def trigger(self) -> asyncio.Task[RefreshState]:
        task = asyncio.create_task(self.refresh_once())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _run(self) -> None:
        while True:
            self.trigger()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self._loop_task is not None and not self._loop_task.done():
            return
        logger.info("Starting wind refresher (every %.0fs)", self.interval_seconds)
        self._loop_task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        tasks = [task for task in (self._loop_task, *self._inflight) if task is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
        self._inflight.clear()
