"""Process entrypoint: ``python -m otprelay`` or the ``otprelay`` console script."""

from __future__ import annotations

import asyncio
import sys

from otprelay.core.runtime import RelayRuntime
from otprelay.core.settings import RelaySettings, load_settings
from otprelay.utils.logging import get_logger


logger = get_logger("otprelay")


async def main(settings: RelaySettings) -> None:
    runtime = RelayRuntime(settings)
    await runtime.run_forever()


def run() -> None:
    logger.info("Starting OTP relay")
    try:
        settings = load_settings()
    except (ValueError, OSError) as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(2)
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    run()
