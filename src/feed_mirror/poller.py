"""Background polling loop for Feed Mirror."""

import asyncio
import logging

from feed_mirror.config import DEFAULT_POLL_INTERVAL
from feed_mirror.errors import FetchError, MirrorError
from feed_mirror.importer import Importer
from feed_mirror.models import RunSummary

logger = logging.getLogger(__name__)


async def import_once(importer: Importer) -> RunSummary | None:
    """Run one import in a worker thread. Returns None if the run failed."""
    try:
        return await asyncio.to_thread(importer.run)
    except FetchError as e:
        logger.warning("Remote fetch failed: %s", e)
    except MirrorError as e:
        logger.error("Import run failed: %s", e)
    return None


async def start_polling(importer: Importer, interval: int = DEFAULT_POLL_INTERVAL) -> None:
    """Run the import on a fixed interval until cancelled."""
    logger.info("Poller started (interval: %ds)", interval)

    while True:
        try:
            summary = await import_once(importer)
            if summary is not None and summary.results:
                logger.info("Poll cycle complete: %s", summary.as_dict())
        except Exception as e:
            logger.error("Poll cycle failed: %s", e)

        await asyncio.sleep(interval)
