"""
LLM client for transcript analysis, backed by Gemini through google-genai.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from google import genai
from google.genai import types

from call_analysis.config import AI_TEMPERATURE, GOOGLE_API_KEY
from call_analysis.exceptions import LLMError

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Text and token usage of one completion."""
    text: str
    input_tokens: int = 0
    output_tokens: int = 0


class GeminiClient:
    """Thin async wrapper around the Gemini API.

    The underlying genai.Client is created on first use, so the processor can
    be built (and tested) without an API key.
    """

    def __init__(self, api_key: Optional[str] = None, temperature: float = AI_TEMPERATURE):
        self._api_key = api_key if api_key is not None else GOOGLE_API_KEY
        self._temperature = temperature
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise LLMError("GOOGLE_API_KEY is not configured")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def complete(
        self,
        model: str,
        max_tokens: int,
        system_prompt: str,
        user_message: str,
    ) -> LLMResponse:
        """Send one system prompt + user message and collect the text answer.

        Errors from the API (network, quota, unknown model) propagate unchanged.
        """
        client = self._get_client()

        response = await client.aio.models.generate_content(
            model=model,
            contents=[
                types.Content(role="user", parts=[types.Part(text=user_message)]),
            ],
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                temperature=self._temperature,
                max_output_tokens=max_tokens,
            ),
        )

        text = ""
        if response and response.candidates:
            for part in response.candidates[0].content.parts or []:
                # Thinking parts would corrupt JSON parsing
                if getattr(part, "thought", False):
                    continue
                if getattr(part, "text", None):
                    text += part.text

        usage = getattr(response, "usage_metadata", None)
        input_tokens = (usage.prompt_token_count or 0) if usage else 0
        output_tokens = (usage.candidates_token_count or 0) if usage else 0

        logger.info(f"Gemini response: {len(text)} chars, {input_tokens} input / {output_tokens} output tokens")
        return LLMResponse(text=text, input_tokens=input_tokens, output_tokens=output_tokens)
