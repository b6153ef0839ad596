import asyncio
import logging
import signal
import sys

from garcon.bootstrap.bootstrapper import bootstrap_bot
from garcon.components.configuration.configuration_interface import ConfigurationError
from garcon.services.SlackBotService.slack_bot_service_interface import (
    SlackBotServiceInterface,
)

logger = logging.getLogger("main")


async def main() -> None:
    bot: SlackBotServiceInterface = await bootstrap_bot()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda: asyncio.ensure_future(bot.stop()))

    await bot.start()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except ConfigurationError as error:
        logger.critical("Invalid configuration: %s", error)
        sys.exit(1)
    except Exception:
        logger.critical("Failed to start Garçon", exc_info=True)
        sys.exit(1)
