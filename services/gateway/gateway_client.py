"""Chat-completion gateway client for typed and photographed homework questions."""

import logging
import time
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from services.gateway.media_inputs import build_image_messages, build_text_messages
from services.gateway.prompts import build_image_question, build_image_system_prompt, build_text_system_prompt
from services.gateway.response_parser import extract_completion_text, extract_usage
from utils.settings import Settings

QUESTION_FALLBACK = "Sorry, I could not process your question."
IMAGE_FALLBACK = "Sorry, I could not analyze this image."


class GatewayError(Exception):
    """Raised when the gateway answers with a non-success status or cannot be reached."""

    def __init__(self, reason: str, status: Optional[int] = None) -> None:
        self.status = status
        self.reason = reason
        detail = f"{status} {reason}" if status is not None else reason
        super().__init__(f"Gateway request failed: {detail}")


def build_openai_client(settings: Settings) -> AsyncOpenAI:
    """Create the SDK client used as the gateway transport.

    Retries are disabled; a failed call surfaces immediately to the caller.
    """
    return AsyncOpenAI(
        api_key=settings.gateway_api_key,
        base_url=settings.gateway_base_url,
        max_retries=0,
    )


class GatewayClient:
    """Translate homework questions into chat-completion calls and return plain text."""

    def __init__(self, client: AsyncOpenAI, settings: Settings) -> None:
        """Initialize the gateway with a shared OpenAI-compatible async client."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.settings = settings

    async def ask_question(self, text: str) -> str:
        """Answer a typed question with a step-by-step solution."""
        messages = build_text_messages(build_text_system_prompt(), text)
        response = await self._post(self.settings.text_model, messages)
        return extract_completion_text(response) or QUESTION_FALLBACK

    async def analyze_image(self, image_data: str | bytes, question: Optional[str] = None) -> str:
        """Solve the problem shown in a base64-encoded JPEG image."""
        messages = build_image_messages(
            build_image_system_prompt(),
            build_image_question(question),
            image_data,
        )
        response = await self._post(self.settings.vision_model, messages)
        return extract_completion_text(response) or IMAGE_FALLBACK

    async def _post(self, model: str, messages: List[Dict[str, Any]]) -> Any:
        """Send one chat-completion request; map transport failures onto GatewayError."""
        start_time = time.time()
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=self.settings.max_tokens,
                temperature=self.settings.temperature,
            )
        except openai.APIStatusError as exc:
            logging.error("Gateway returned status %s: %s", exc.status_code, exc.message)
            raise GatewayError(exc.message, status=exc.status_code) from exc
        except openai.APIConnectionError as exc:
            # APITimeoutError is a subclass of APIConnectionError.
            logging.error("Gateway transport failure: %s", exc)
            raise GatewayError(str(exc)) from exc

        usage = extract_usage(response)
        logging.info(
            "Gateway call model=%s latency=%.3fs input_tokens=%s output_tokens=%s",
            model,
            time.time() - start_time,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return response
