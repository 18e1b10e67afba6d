"""Thin wrapper around the Anthropic SDK for the debugging assistant.

Usage:
    client = ModelClient(api_key="sk-ant-...")
    text = client.generate("Analyze ...", image=ImageInput(data=png_bytes, mime_type="image/png"))

The client holds no per-call state; one instance can serve every request.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass

import anthropic

from codelens.assistant.prompts import SYSTEM_INSTRUCTION

DEFAULT_MODEL = "claude-sonnet-4-20250514"
MAX_TOKENS = 4096

# Prefilling the assistant turn with "{" keeps the reply a bare JSON object.
JSON_PREFILL = "{"


@dataclass(frozen=True)
class ImageInput:
    data: bytes
    mime_type: str  # "image/png", "image/jpeg", ...

    def to_block(self) -> dict:
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": self.mime_type,
                "data": base64.b64encode(self.data).decode("ascii"),
            },
        }


class ModelClient:
    """Sends one prompt (plus an optional image) and returns the raw reply text."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        max_tokens: int = MAX_TOKENS,
        system: str = SYSTEM_INSTRUCTION,
    ) -> None:
        # Retries are owned by codelens.assistant.resilience, not the SDK.
        self._client = anthropic.Anthropic(api_key=api_key, max_retries=0)
        self._model = model
        self._max_tokens = max_tokens
        self._system = system

    @property
    def model(self) -> str:
        return self._model

    def generate(self, prompt: str, image: ImageInput | None = None, json_output: bool = True) -> str:
        content: list[dict] = []
        if image is not None:
            content.append(image.to_block())
        content.append({"type": "text", "text": prompt})

        messages: list[dict] = [{"role": "user", "content": content}]
        if json_output:
            messages.append({"role": "assistant", "content": JSON_PREFILL})

        response = self._client.messages.create(
            model=self._model,
            max_tokens=self._max_tokens,
            system=self._system,
            messages=messages,
        )

        if not response.content:
            return ""
        text = response.content[0].text
        return JSON_PREFILL + text if json_output else text
