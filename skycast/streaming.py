"""Async wrapper streaming training progress from a worker thread."""

import asyncio
import logging
from typing import AsyncIterator, Callable

from skycast.entities import EpochProgress

logger = logging.getLogger(__name__)


def _report_abandoned(job: asyncio.Future):
    if job.cancelled():
        return
    error = job.exception()
    if error is not None:
        logger.warning("Training finished after its consumer left: %s", error)


async def stream_training(train_fn: Callable, *args, **kwargs) -> AsyncIterator[EpochProgress]:
    """
    Run a blocking trainer on a thread and yield its epoch events.

    ``train_fn`` must accept an ``on_epoch_end`` keyword, e.g.
    ``WeatherForecaster.train_regressor``. The trainer's own exception, if
    any, is raised once every event has been yielded. The fit keeps running
    if the consumer stops iterating early; a failure it hits afterwards is
    logged instead of raised.

    Example:
    --------
    async for progress in stream_training(forecaster.train_regressor, X, y):
        print(progress.epoch, progress.loss)
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def publish(progress: EpochProgress):
        loop.call_soon_threadsafe(queue.put_nowait, progress)

    job = asyncio.ensure_future(asyncio.to_thread(train_fn, *args, on_epoch_end=publish, **kwargs))

    finished = False
    try:
        while True:
            getter = asyncio.ensure_future(queue.get())
            try:
                done, _ = await asyncio.wait({getter, job}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                if not getter.done():
                    getter.cancel()
            if getter in done:
                yield getter.result()
                continue
            break

        # Events published before the job finished are already queued
        while not queue.empty():
            yield queue.get_nowait()
        finished = True
    finally:
        if not finished:
            job.add_done_callback(_report_abandoned)

    job.result()
