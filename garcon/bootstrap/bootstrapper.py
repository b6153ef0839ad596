from garcon.dependencies.components import get_components
from garcon.dependencies.services import get_slack_bot_service
from garcon.services.SlackBotService.slack_bot_service_interface import (
    SlackBotServiceInterface,
)


async def bootstrap_bot(env: str | None = None) -> SlackBotServiceInterface:
    components = get_components(env=env)
    return get_slack_bot_service(components)
