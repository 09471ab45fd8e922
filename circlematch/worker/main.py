"""
Worker entry point - the fixed-cadence matching trigger.

Runs MatchingPipeline once per MATCHING_INTERVAL_SECONDS, with ticks
aligned to interval boundaries (with the default 60 seconds, a few
milliseconds after every full minute) so each deadline minute is seen.

Usage:
======
    python -m circlematch.worker.main

Stops cleanly on SIGINT / SIGTERM.
"""

import asyncio
from datetime import datetime, timezone
import signal
import time

from circlematch.config.settings import settings
from circlematch.shared.core.logging import clear_log_context, logger
from circlematch.shared.db import AsyncSessionLocal, close_db, init_db
from circlematch.shared.schemas.matching import MatchingRunReport
from circlematch.shared.services.matching_service import validate_matching_settings
from circlematch.worker.pipelines.matching_pipeline import MatchingPipeline


def seconds_until_next_tick(interval: int, now: float) -> float:
    """Seconds from `now` (epoch seconds) to the next multiple of interval."""
    return interval - (now % interval)


def log_report(report: MatchingRunReport) -> None:
    if not report.results:
        logger.debug("No slots due", processed_at=report.processed_at.isoformat())
        return

    for result in report.results:
        log = logger.info if not result.is_failure else logger.error
        log(
            "Slot result",
            **result.model_dump(mode="json", by_alias=True),
        )
    logger.info("Matching tick complete", success=report.success, slots=len(report.results))


async def run_worker(stop: asyncio.Event) -> None:
    """Tick until `stop` is set."""
    pipeline = MatchingPipeline(AsyncSessionLocal, settings)
    interval = settings.MATCHING_INTERVAL_SECONDS

    logger.info("Matching worker started", interval_seconds=interval)

    while not stop.is_set():
        try:
            report = await pipeline.run(datetime.now(timezone.utc))
            log_report(report)
        except Exception as e:
            # slots missed by this tick need a force-match
            logger.error("Matching tick crashed", error=str(e), exc_info=True)
        finally:
            clear_log_context()

        try:
            await asyncio.wait_for(stop.wait(), timeout=seconds_until_next_tick(interval, time.time()))
        except asyncio.TimeoutError:
            pass

    logger.info(
        "Matching worker stopped",
        ticks=pipeline.stats.ticks,
        circles_created=pipeline.stats.circles_created,
        failed_runs=pipeline.stats.failed_runs,
    )


async def main() -> None:
    validate_matching_settings(settings)
    await init_db()

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        await run_worker(stop)
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
