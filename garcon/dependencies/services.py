from pathlib import Path

import boto3
from google import genai
from slack_bolt.async_app import AsyncApp
from slack_sdk.web.async_client import AsyncWebClient

from garcon.bootstrap.components import Components
from garcon.components.configuration.configuration_interface import (
    ConfigurationInterface,
)
from garcon.components.logger.logger_interface import LoggerInterface
from garcon.services.ContentAssemblerService.content_assembler_service import (
    DEFAULT_BOT_LABEL,
    ContentAssemblerService,
)
from garcon.services.ContentAssemblerService.content_assembler_service_interface import (
    ContentAssemblerServiceInterface,
)
from garcon.services.GeminiService.gemini_service import GeminiService
from garcon.services.GeminiService.gemini_service_interface import (
    GeminiServiceInterface,
)
from garcon.services.MentionHandlerService.mention_handler_service import (
    MentionHandlerService,
)
from garcon.services.MentionHandlerService.mention_handler_service_interface import (
    MentionHandlerServiceInterface,
)
from garcon.services.QueueService.queue_service_interface import QueueServiceInterface
from garcon.services.QueueService.sqs_queue_service import SqsQueueService
from garcon.services.SlackBotService.slack_bot_service import SlackBotService
from garcon.services.SlackBotService.slack_bot_service_interface import (
    SlackBotServiceInterface,
)
from garcon.services.SlackService.slack_service import SlackService
from garcon.services.SlackService.slack_service_interface import (
    SlackServiceInterface,
)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def get_slack_service(components: Components) -> SlackServiceInterface:
    configuration = components.get_component(ConfigurationInterface)
    return SlackService(
        client=components.get_component(AsyncWebClient),
        bot_token=configuration.get_configuration("SLACK_BOT_TOKEN", str),
        logger=components.get_component(LoggerInterface).get_logger("SlackService"),
        max_attempts=configuration.get_configuration("SLACK_MAX_ATTEMPTS", int, default=3),
    )


def get_content_assembler_service(
    components: Components, slack_service: SlackServiceInterface
) -> ContentAssemblerServiceInterface:
    configuration = components.get_component(ConfigurationInterface)
    return ContentAssemblerService(
        slack_service=slack_service,
        logger=components.get_component(LoggerInterface).get_logger(
            "ContentAssemblerService"
        ),
        bot_label=configuration.get_configuration(
            "BOT_DISPLAY_NAME", str, default=DEFAULT_BOT_LABEL
        ),
        max_image_bytes=configuration.get_configuration(
            "MAX_IMAGE_BYTES", int, default=5 * 1024 * 1024
        ),
    )


def get_gemini_service(components: Components) -> GeminiServiceInterface:
    """
    Create the Gemini client wrapper.

    The system prompt is read from SYSTEM_PROMPT_PATH (relative paths resolve
    against the project root) the first time a reply is generated.
    """
    configuration = components.get_component(ConfigurationInterface)

    prompt_path = Path(
        configuration.get_configuration(
            "SYSTEM_PROMPT_PATH", str, default="garcon.prompt"
        )
    )
    if not prompt_path.is_absolute():
        prompt_path = PROJECT_ROOT / prompt_path

    return GeminiService(
        client=components.get_component(genai.Client),
        model_name=configuration.get_configuration(
            "GEMINI_MODEL", str, default="gemini-2.5-pro"
        ),
        fallback_models=configuration.get_configuration(
            "GEMINI_FALLBACK_MODELS", list, default=[]
        ),
        system_prompt_path=prompt_path,
        logger=components.get_component(LoggerInterface).get_logger("GeminiService"),
    )


def get_mention_handler_service(
    components: Components, slack_service: SlackServiceInterface
) -> MentionHandlerServiceInterface:
    return MentionHandlerService(
        slack_service=slack_service,
        content_assembler=get_content_assembler_service(components, slack_service),
        gemini_service=get_gemini_service(components),
        logger=components.get_component(LoggerInterface).get_logger(
            "MentionHandlerService"
        ),
    )


def get_queue_service(components: Components) -> QueueServiceInterface:
    configuration = components.get_component(ConfigurationInterface)
    configuration.validate_required(["EVENTS_QUEUE_URL"])

    region = configuration.get_configuration("AWS_REGION", str, default=None)
    return SqsQueueService(
        sqs_client=boto3.client("sqs", region_name=region),
        queue_url=configuration.get_configuration("EVENTS_QUEUE_URL", str),
        logger=components.get_component(LoggerInterface).get_logger("SqsQueueService"),
    )


def get_slack_bot_service(components: Components) -> SlackBotServiceInterface:
    configuration = components.get_component(ConfigurationInterface)
    configuration.validate_required(["SLACK_APP_TOKEN"])

    slack_service = get_slack_service(components)
    app = AsyncApp(
        client=components.get_component(AsyncWebClient),
        signing_secret=configuration.get_configuration("SLACK_SIGNING_SECRET", str),
    )

    return SlackBotService(
        app=app,
        app_token=configuration.get_configuration("SLACK_APP_TOKEN", str),
        slack_service=slack_service,
        mention_handler=get_mention_handler_service(components, slack_service),
        logger=components.get_component(LoggerInterface).get_logger("SlackBotService"),
        port=configuration.get_configuration("PORT", int, default=3000),
    )
