from __future__ import annotations

from google import genai
from google.genai import types

from repolens_core.providers.base import BaseAssistant


class GeminiAssistant(BaseAssistant):
    MODEL = "gemini-2.5-flash-lite"
    API_KEY_ENV = "GEMINI_API_KEY"

    def __init__(self, api_key: str | None, model: str | None = None):
        self.model = model or self.MODEL
        # No key means no client: operations raise ConfigError instead of
        # failing inside the SDK.
        self.client = genai.Client(api_key=api_key) if api_key else None

    def _call_api(self, prompt: str) -> str | None:
        response = self.client.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=self.TEMPERATURE,
                top_k=self.TOP_K,
                top_p=self.TOP_P,
                max_output_tokens=self.MAX_TOKENS,
            ),
        )
        return response.text
