"""Provider adapter contract shared by every AI backend."""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_core.runnables import Runnable

from learnloop.ai.errors import EmptyResponseError, ProviderAPIError, ResponseParseError
from learnloop.models.generation import BackendId, GenerateOptions

logger = logging.getLogger(__name__)

JSON_ONLY_SUFFIX = "\n\nPlease respond with valid JSON only, no markdown formatting."
IMAGE_MIME_TYPE = "image/png"


def strip_code_fences(text: str) -> str:
    """
    Remove a surrounding markdown code fence from a model response.

    Only a fence that opens the response is stripped (optionally tagged
    ``json``), together with a closing fence at the very end.

    Args:
        text: Raw response text

    Returns:
        Text with the fence markers removed
    """
    text = text.strip()
    if text.startswith("```json"):
        text = re.sub(r"^```json\s*", "", text)
        text = re.sub(r"\s*```$", "", text)
    elif text.startswith("```"):
        text = re.sub(r"^```\s*", "", text)
        text = re.sub(r"\s*```$", "", text)
    return text


def image_payload(image: str) -> str:
    """Get the base64 data of a data URI or raw base64 string."""
    if "base64," in image:
        return image.split("base64,", 1)[1]
    return image


def extract_text(content: Any) -> str:
    """Collect the text parts of a chat model message content."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def _error_details(exc: Exception) -> tuple[str, int | None]:
    # SDK errors expose the raw body and status in different places
    response = getattr(exc, "response", None)
    status_code = getattr(exc, "status_code", None) or getattr(response, "status_code", None)
    body = getattr(exc, "body", None)
    if body is None and response is not None:
        body = getattr(response, "text", None)
    if body is None or body == "":
        body = str(exc)
    if not isinstance(body, str):
        body = json.dumps(body, default=str)
    return body, status_code if isinstance(status_code, int) else None


class AIProvider(ABC):
    """
    Uniform capability surface over one AI backend.

    Subclasses only say how to build the LangChain chat model for their
    backend and whether it has a native JSON mode. Adapters never retry:
    retrying across backends is the fallback orchestrator's job.
    """

    backend: BackendId
    default_model: str
    native_json: bool = False

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        *,
        chat_model: Runnable | None = None,
    ):
        self.api_key = api_key
        self.model = model or self.default_model
        # Pre-built chat model used instead of the backend client
        self._chat_model = chat_model

    @abstractmethod
    def build_chat_model(
        self, model: str, options: GenerateOptions, *, json_mode: bool
    ) -> Runnable:
        """Create the LangChain chat model for one call."""

    async def generate_text(
        self, prompt: str, options: GenerateOptions | None = None
    ) -> str:
        """Generate free text from a prompt."""
        return await self._complete(prompt, None, options, json_mode=False)

    async def generate_json(
        self, prompt: str, options: GenerateOptions | None = None
    ) -> Any:
        """Generate a parsed JSON value from a prompt."""
        return await self._complete_json(prompt, None, options)

    async def generate_with_image(
        self, prompt: str, image: str, options: GenerateOptions | None = None
    ) -> str:
        """Generate free text from a prompt and an image."""
        return await self._complete(prompt, image, options, json_mode=False)

    async def generate_json_with_image(
        self, prompt: str, image: str, options: GenerateOptions | None = None
    ) -> Any:
        """Generate a parsed JSON value from a prompt and an image."""
        return await self._complete_json(prompt, image, options)

    def build_messages(
        self, prompt: str, image: str | None, options: GenerateOptions
    ) -> list[BaseMessage]:
        """Build the chat messages for one call."""
        messages: list[BaseMessage] = []
        if options.system_instruction:
            messages.append(SystemMessage(content=options.system_instruction))

        if image is None:
            messages.append(HumanMessage(content=prompt))
        else:
            data = image_payload(image)
            messages.append(
                HumanMessage(
                    content=[
                        {"type": "text", "text": prompt},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{IMAGE_MIME_TYPE};base64,{data}"},
                        },
                    ]
                )
            )
        return messages

    async def _complete(
        self,
        prompt: str,
        image: str | None,
        options: GenerateOptions | None,
        *,
        json_mode: bool,
    ) -> str:
        options = options or GenerateOptions()
        model = options.model or self.model
        llm = self._chat_model or self.build_chat_model(model, options, json_mode=json_mode)
        messages = self.build_messages(prompt, image, options)

        logger.debug("Calling %s/%s (json=%s, image=%s)", self.backend.value, model, json_mode, image is not None)
        try:
            response = await llm.ainvoke(messages)
        except Exception as exc:
            body, status_code = _error_details(exc)
            raise ProviderAPIError(self.backend.value, body, status_code) from exc

        text = extract_text(getattr(response, "content", response))
        if not text or not text.strip():
            raise EmptyResponseError(self.backend.value)
        return text

    async def _complete_json(
        self, prompt: str, image: str | None, options: GenerateOptions | None
    ) -> Any:
        if not self.native_json:
            # No structured-output mode, so ask for bare JSON in the prompt
            prompt = f"{prompt}{JSON_ONLY_SUFFIX}"
        text = await self._complete(prompt, image, options, json_mode=True)

        json_text = strip_code_fences(text)
        try:
            return json.loads(json_text)
        except json.JSONDecodeError as e:
            raise ResponseParseError(self.backend.value, text, str(e)) from e

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r})"
