import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from garcon.entities.message import MentionEvent
from garcon.services.ContentAssemblerService.content_assembler_service_interface import (
    ContentAssemblerServiceInterface,
)
from garcon.services.GeminiService.gemini_service_interface import (
    GeminiServiceInterface,
)
from garcon.services.MentionHandlerService.mention_handler_service import (
    EMPTY_REPLY_NOTICE,
    MentionHandlerService,
)
from garcon.services.SlackService.slack_service_interface import (
    SlackServiceInterface,
)

THREAD = [
    {"user": "U1", "text": "<@UBOT> hi", "ts": "1.0", "files": []},
    {"user": "UBOT", "text": "hello", "ts": "2.0", "files": []},
    {"user": "U2", "text": "<@UBOT> and me?", "ts": "3.0", "files": []},
]


@pytest.fixture
def slack_service() -> MagicMock:
    service = MagicMock(spec=SlackServiceInterface)
    service.initialize = AsyncMock(return_value="UBOT")
    service.fetch_thread = AsyncMock(return_value=THREAD)
    service.resolve_user_names = AsyncMock(return_value={"U1": "Ana"})
    service.post_reply = AsyncMock()
    return service


@pytest.fixture
def content_assembler() -> MagicMock:
    assembler = MagicMock(spec=ContentAssemblerServiceInterface)
    assembler.build_content_sequence = AsyncMock(
        return_value=[{"text": "Ana: hi"}]
    )
    return assembler


@pytest.fixture
def gemini_service() -> MagicMock:
    service = MagicMock(spec=GeminiServiceInterface)
    service.generate = AsyncMock(return_value="Here you go")
    return service


@pytest.fixture
def handler(slack_service, content_assembler, gemini_service) -> MentionHandlerService:
    return MentionHandlerService(
        slack_service=slack_service,
        content_assembler=content_assembler,
        gemini_service=gemini_service,
        logger=logging.getLogger("MentionHandlerTest"),
    )


def mention(**overrides) -> MentionEvent:
    event: MentionEvent = {
        "type": "app_mention",
        "channel": "C1",
        "user": "U2",
        "text": "<@UBOT> and me?",
        "ts": "3.0",
        "thread_ts": "1.0",
    }
    event.update(overrides)  # type: ignore[typeddict-item]
    return event


class TestHandleMention:
    @pytest.mark.asyncio
    async def test_runs_pipeline_and_posts_reply(
        self, handler, slack_service, content_assembler, gemini_service
    ) -> None:
        await handler.handle_mention(mention())

        slack_service.fetch_thread.assert_awaited_once_with("C1", "1.0")
        slack_service.resolve_user_names.assert_awaited_once_with(["U1", "U2"])
        content_assembler.build_content_sequence.assert_awaited_once_with(
            THREAD, "UBOT", {"U1": "Ana"}
        )
        gemini_service.generate.assert_awaited_once_with([{"text": "Ana: hi"}])
        slack_service.post_reply.assert_awaited_once_with("C1", "Here you go", "1.0")

    @pytest.mark.asyncio
    async def test_mention_without_thread_uses_its_own_ts(
        self, handler, slack_service
    ) -> None:
        event = mention(ts="9.0")
        del event["thread_ts"]

        await handler.handle_mention(event)

        slack_service.fetch_thread.assert_awaited_once_with("C1", "9.0")
        assert slack_service.post_reply.await_args.args[2] == "9.0"

    @pytest.mark.asyncio
    async def test_empty_model_reply_posts_notice(
        self, handler, slack_service, gemini_service
    ) -> None:
        gemini_service.generate.return_value = "   "

        await handler.handle_mention(mention())

        slack_service.post_reply.assert_awaited_once_with(
            "C1", EMPTY_REPLY_NOTICE, "1.0"
        )

    @pytest.mark.asyncio
    async def test_failure_posts_one_notice_and_reraises(
        self, handler, slack_service, gemini_service
    ) -> None:
        error = RuntimeError("model exploded")
        gemini_service.generate.side_effect = error

        with pytest.raises(RuntimeError) as exc_info:
            await handler.handle_mention(mention())

        assert exc_info.value is error
        slack_service.post_reply.assert_awaited_once()
        channel, text, thread_ts = slack_service.post_reply.await_args.args
        assert (channel, thread_ts) == ("C1", "1.0")
        assert "model exploded" in text

    @pytest.mark.asyncio
    async def test_failed_notice_keeps_original_error(
        self, handler, slack_service, content_assembler
    ) -> None:
        content_assembler.build_content_sequence.side_effect = ValueError("bad thread")
        slack_service.post_reply.side_effect = ConnectionError("slack down")

        with pytest.raises(ValueError, match="bad thread"):
            await handler.handle_mention(mention())

        slack_service.post_reply.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_reply_post_is_followed_by_notice(
        self, handler, slack_service
    ) -> None:
        slack_service.post_reply.side_effect = [RuntimeError("msg_too_long"), None]

        with pytest.raises(RuntimeError, match="msg_too_long"):
            await handler.handle_mention(mention())

        assert slack_service.post_reply.await_count == 2
        assert "msg_too_long" in slack_service.post_reply.await_args_list[1].args[1]
