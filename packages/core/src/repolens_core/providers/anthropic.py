from __future__ import annotations

from repolens_core.providers.base import BaseAssistant


class AnthropicAssistant(BaseAssistant):
    MODEL = "claude-sonnet-4-20250514"
    API_KEY_ENV = "ANTHROPIC_API_KEY"

    def __init__(self, api_key: str | None, model: str | None = None):
        self.model = model or self.MODEL
        if not api_key:
            self.client = None
            return
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'repolens[anthropic]'"
            )
        self.client = Anthropic(api_key=api_key)

    def _call_api(self, prompt: str) -> str | None:
        # Imported inside the method because the anthropic package is optional;
        # __init__ already validated it is installed before we reach here.
        from anthropic.types import TextBlock

        # temperature and top_k only: Anthropic advises against also setting top_p.
        response = self.client.messages.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.TEMPERATURE,
            top_k=self.TOP_K,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks)
