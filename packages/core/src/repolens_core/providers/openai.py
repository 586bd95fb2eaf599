from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from repolens_core.providers.base import BaseAssistant


class OpenAIAssistant(BaseAssistant):
    MODEL = "gpt-4o"
    API_KEY_ENV = "OPENAI_API_KEY"

    def __init__(self, api_key: str | None, model: str | None = None):
        self.model = model or self.MODEL
        if not api_key:
            self.client = None
            return
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. " "Install it with: pip install 'repolens[openai]'"
            )
        self.client = _OpenAI(api_key=api_key)

    def _call_api(self, prompt: str) -> str | None:
        # Chat Completions has no top_k; temperature and top_p are sent.
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.TEMPERATURE,
            top_p=self.TOP_P,
            max_tokens=self.MAX_TOKENS,
        )
        return response.choices[0].message.content
