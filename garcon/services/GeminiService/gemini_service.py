"""
Gemini generation client with multi-model fallback.

The preferred model is tried first. A capacity failure (429/503) moves on to the
next configured fallback model straight away; any other failure is raised as is.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from pathlib import Path

from google import genai
from google.genai import types
from langfuse import observe

from garcon.entities.message import ContentUnit
from garcon.services.GeminiService.error_classification import (
    ErrorClassification,
    classify_generation_error,
    describe_generation_error,
)
from garcon.services.GeminiService.gemini_service_interface import (
    GeminiServiceInterface,
)

DEFAULT_SYSTEM_INSTRUCTION = """You are Garçon, a helpful assistant living in a Slack workspace.
Messages in the conversation are prefixed with the author's name.
Answer the latest request using the whole thread, including any attached images.
Format replies with Slack mrkdwn: single asterisks for bold, no headings.
"""

EMPTY_THREAD_NOTE = "[System note: the thread has no readable content]"


class GeminiService(GeminiServiceInterface):
    def __init__(
        self,
        client: genai.Client,
        model_name: str,
        logger: logging.Logger,
        fallback_models: list[str] | None = None,
        system_prompt_path: str | Path | None = None,
    ) -> None:
        self.client = client
        self.model_name = model_name
        self.logger = logger
        self.fallback_models = [
            model
            for model in dict.fromkeys(fallback_models or [])
            if model and model != model_name
        ]
        self.system_prompt_path = Path(system_prompt_path) if system_prompt_path else None

        self._system_instruction: str | None = None
        self._instruction_lock = asyncio.Lock()

        self.logger.info(
            "GeminiService initialized. Model: %s, fallbacks: %s",
            self.model_name,
            ", ".join(self.fallback_models) or "none",
        )

    @property
    def models(self) -> list[str]:
        return [self.model_name, *self.fallback_models]

    async def get_system_instruction(self) -> str:
        if self._system_instruction is not None:
            return self._system_instruction

        async with self._instruction_lock:
            if self._system_instruction is None:
                self._system_instruction = await asyncio.to_thread(
                    self._load_system_instruction
                )
        return self._system_instruction

    def _load_system_instruction(self) -> str:
        if self.system_prompt_path is None:
            return DEFAULT_SYSTEM_INSTRUCTION
        try:
            return self.system_prompt_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self.logger.warning(
                "System prompt file not found at %s, using default",
                self.system_prompt_path,
            )
            return DEFAULT_SYSTEM_INSTRUCTION

    def _to_parts(self, content: list[ContentUnit]) -> list[types.Part]:
        parts: list[types.Part] = []
        for unit in content:
            if "text" in unit:
                parts.append(types.Part.from_text(text=unit["text"]))
            else:
                inline = unit["inline_data"]
                parts.append(
                    types.Part.from_bytes(
                        data=base64.b64decode(inline["data"]),
                        mime_type=inline["mime_type"],
                    )
                )
        return parts

    @observe()
    async def generate(self, content: list[ContentUnit]) -> str:
        system_instruction = await self.get_system_instruction()
        parts = self._to_parts(content)
        if not parts:
            self.logger.warning("No content to send, using a placeholder part")
            parts = [types.Part.from_text(text=EMPTY_THREAD_NOTE)]

        image_parts = sum(1 for part in parts if part.inline_data is not None)
        self.logger.debug(
            "Gemini request prepared: %d parts (%d text, %d image)",
            len(parts),
            len(parts) - image_parts,
            image_parts,
        )

        config = types.GenerateContentConfig(system_instruction=system_instruction)
        last_error: Exception | None = None

        for attempt, model in enumerate(self.models, start=1):
            try:
                response = await self.client.aio.models.generate_content(
                    model=model,
                    contents=parts,
                    config=config,
                )
            except Exception as exc:
                info = describe_generation_error(exc)
                if classify_generation_error(info) is ErrorClassification.NON_TRANSIENT:
                    self.logger.error(
                        "Gemini model %s failed with a non-transient error: %s",
                        model,
                        info.message,
                    )
                    raise

                self.logger.warning(
                    "Gemini model %s unavailable (%s %s), trying next model (%d/%d)",
                    model,
                    info.status_code,
                    info.status,
                    attempt,
                    len(self.models),
                )
                last_error = exc
                continue

            text = response.text or ""
            self.logger.debug(
                "Gemini response received from %s: %d chars, preview: %s",
                model,
                len(text),
                text[:300],
            )
            return text

        self.logger.error("All Gemini models exhausted: %s", ", ".join(self.models))
        raise last_error  # type: ignore[misc]
