"""
Entry point for QuotaView.

WORKFLOW OVERVIEW:
==================
The quota core is normally embedded in a host application that owns the
event loop and renders the snapshot. Running this module directly is a quick
way to check that the local language server can be found and queried:

1. Sets up logging
2. Creates a QuotaViewModel for the current platform
3. Runs one manual refresh
4. Logs the resulting snapshot
"""

import asyncio
import logging
import sys

from quotaview.viewmodels.quota_viewmodel import QuotaViewModel

logger = logging.getLogger("quotaview")


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for QuotaView.

    Format: timestamp [level] module: message. In debug mode the quotaview
    and aiohttp loggers go down to DEBUG, which includes every failed
    candidate port. Asyncio stays at INFO (its DEBUG output is mostly
    transport noise).
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        force=True,
    )

    logging.getLogger('quotaview').setLevel(level)
    logging.getLogger('aiohttp').setLevel(level if debug else logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.INFO)


async def run_once(view_model: QuotaViewModel) -> int:
    """Refresh once and log the snapshot. Returns a process exit code."""
    await view_model.manual_refresh()
    snapshot = view_model.get_snapshot()

    if snapshot.last_error:
        logger.error("Error: %s", snapshot.last_error)
        return 1

    if not snapshot.last_records:
        logger.info("No models found")
        return 0

    for record in snapshot.last_records:
        logger.info(
            "%s: %d%% remaining, resets %s",
            record.model_label,
            record.remaining_percent,
            record.reset_timestamp or "N/A",
        )
    return 0


def main() -> int:
    setup_logging()
    return asyncio.run(run_once(QuotaViewModel()))


if __name__ == "__main__":
    sys.exit(main())
