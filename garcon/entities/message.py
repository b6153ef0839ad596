from typing import Literal, NotRequired, TypedDict


class ImageReference(TypedDict):
    """An image attached to a Slack message, either remote or already inlined."""

    mime_type: str
    url: NotRequired[str]
    base64: NotRequired[str]
    file_name: NotRequired[str | None]


class InlineImage(TypedDict):
    """Binary image payload encoded as base64."""

    base64: str
    mime_type: str
    size_bytes: int


class SlackThreadMessage(TypedDict):
    """One message of a thread as returned by the Slack client."""

    user: str
    text: str
    ts: str
    files: list[ImageReference]


class ConversationMessage(TypedDict):
    """A thread message resolved for the model: role, label, text and images."""

    role: Literal["human", "bot"]
    display_name: str
    content: str
    images: list[InlineImage]


class InlineData(TypedDict):
    data: str
    mime_type: str


class TextUnit(TypedDict):
    text: str


class InlineImageUnit(TypedDict):
    inline_data: InlineData


ContentUnit = TextUnit | InlineImageUnit


class MentionEvent(TypedDict):
    """Slack `app_mention` event body, relayed directly or through the queue."""

    channel: str
    user: str
    text: str
    ts: str
    thread_ts: NotRequired[str]
    type: NotRequired[str]
