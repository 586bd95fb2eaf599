"""Tests for AI assistant implementations.

Shared behaviour (configuration checks, prompt building, fallbacks, error
translation) lives in BaseAssistant and is tested once via a stub. Provider
tests cover only the SDK call each one makes in _call_api.
"""

from unittest.mock import MagicMock

import pytest

from repolens_core.errors import ConfigError, ModelError, ValidationError
from repolens_core.models import Comment, ProjectKind
from repolens_core.providers.base import SUGGESTION_FALLBACK, SUMMARY_FALLBACK, BaseAssistant
from repolens_core.providers.gemini import GeminiAssistant
from repolens_core.providers.openai import OpenAIAssistant


class _StubAssistant(BaseAssistant):
    API_KEY_ENV = "STUB_API_KEY"

    def __init__(self, reply="Use a data class.", configured=True):
        self.client = object() if configured else None
        self.reply = reply
        self.prompts = []

    def _call_api(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


COMMENTS = [Comment("A.kt", "Avoid !!"), Comment("B.kt", "Extract a use case")]


# ---------------------------------------------------------------------------
# Shared behaviour — tested once through the stub, not per provider
# ---------------------------------------------------------------------------


class TestSuggestComment:
    def test_returns_stripped_reply(self):
        assistant = _StubAssistant(reply="  Use a data class.\n")
        assert assistant.suggest_comment("class A", "A.kt", ProjectKind.KOTLIN) == "Use a data class."

    def test_unconfigured_raises_config_error_without_calling_api(self):
        assistant = _StubAssistant(configured=False)
        with pytest.raises(ConfigError, match="STUB_API_KEY"):
            assistant.suggest_comment("class A", "A.kt", ProjectKind.KOTLIN)
        assert assistant.prompts == []

    def test_config_checked_before_content(self):
        with pytest.raises(ConfigError):
            _StubAssistant(configured=False).suggest_comment("", "A.kt", ProjectKind.KOTLIN)

    def test_blank_content_raises_validation_error(self):
        assistant = _StubAssistant()
        with pytest.raises(ValidationError):
            assistant.suggest_comment("   \n", "A.kt", ProjectKind.KOTLIN)
        assert assistant.prompts == []

    @pytest.mark.parametrize("reply", ["", "   ", None])
    def test_empty_reply_returns_fallback(self, reply):
        assert _StubAssistant(reply=reply).suggest_comment("x", "A.kt", ProjectKind.KOTLIN) == SUGGESTION_FALLBACK

    def test_sdk_failure_becomes_model_error(self):
        assistant = _StubAssistant(reply=RuntimeError("quota exceeded"))
        with pytest.raises(ModelError, match="quota exceeded"):
            assistant.suggest_comment("x", "A.kt", ProjectKind.KOTLIN)

    def test_prompt_carries_file_and_kind(self):
        assistant = _StubAssistant()
        assistant.suggest_comment("fun main() {}", "app/Main.kt", ProjectKind.KOTLIN)
        prompt = assistant.prompts[0]
        assert "app/Main.kt" in prompt
        assert "fun main() {}" in prompt
        assert "Kotlin" in prompt
        assert "coroutines" in prompt

    def test_blazor_prompt_uses_blazor_focus(self):
        assistant = _StubAssistant()
        assistant.suggest_comment("@page \"/\"", "Index.razor", ProjectKind.BLAZOR)
        assert "Blazor (C#)" in assistant.prompts[0]
        assert "coroutines" not in assistant.prompts[0]


class TestSummarize:
    def test_returns_summary(self):
        assert _StubAssistant(reply="Mostly null-safety.").summarize(COMMENTS, ProjectKind.KOTLIN) == (
            "Mostly null-safety."
        )

    def test_empty_comments_raise_validation_error(self):
        assistant = _StubAssistant()
        with pytest.raises(ValidationError):
            assistant.summarize([], ProjectKind.KOTLIN)
        assert assistant.prompts == []

    def test_unconfigured_raises_config_error(self):
        with pytest.raises(ConfigError):
            _StubAssistant(configured=False).summarize(COMMENTS, ProjectKind.KOTLIN)

    def test_empty_reply_returns_fallback(self):
        assert _StubAssistant(reply="").summarize(COMMENTS, ProjectKind.KOTLIN) == SUMMARY_FALLBACK

    def test_prompt_lists_every_comment(self):
        assistant = _StubAssistant()
        assistant.summarize(COMMENTS, ProjectKind.KOTLIN)
        prompt = assistant.prompts[0]
        assert "File: A.kt\nComment: Avoid !!" in prompt
        assert "File: B.kt\nComment: Extract a use case" in prompt


# ---------------------------------------------------------------------------
# Provider-specific — only what differs between SDKs
# ---------------------------------------------------------------------------


class TestGeminiAssistant:
    def test_no_key_means_unconfigured(self):
        assert not GeminiAssistant(api_key=None).configured

    def test_builds_client_from_key(self, mocker):
        client_cls = mocker.patch("repolens_core.providers.gemini.genai.Client")
        assistant = GeminiAssistant(api_key="gem-key")
        client_cls.assert_called_once_with(api_key="gem-key")
        assert assistant.configured

    def test_call_api_sends_generation_profile(self):
        assistant = GeminiAssistant(api_key=None, model="gemini-custom")
        assistant.client = MagicMock()
        assistant.client.models.generate_content.return_value.text = "Looks fine."

        assert assistant._call_api("prompt") == "Looks fine."
        kwargs = assistant.client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-custom"
        assert kwargs["contents"] == "prompt"
        assert kwargs["config"].temperature == 0.7
        assert kwargs["config"].top_k == 40
        assert kwargs["config"].max_output_tokens == 1024


class TestOpenAIAssistant:
    def test_no_key_means_unconfigured(self):
        assert not OpenAIAssistant(api_key=None).configured

    def test_raises_import_error_without_sdk(self):
        import repolens_core.providers.openai as openai_mod

        real_openai = openai_mod._OpenAI
        openai_mod._OpenAI = None
        try:
            with pytest.raises(ImportError):
                OpenAIAssistant(api_key="key")
        finally:
            openai_mod._OpenAI = real_openai

    def test_call_api_returns_message_content(self):
        assistant = OpenAIAssistant(api_key=None)
        assistant.client = MagicMock()
        assistant.client.chat.completions.create.return_value.choices = [
            MagicMock(message=MagicMock(content="Split this class."))
        ]
        assert assistant._call_api("prompt") == "Split this class."
        kwargs = assistant.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == OpenAIAssistant.MODEL
        assert kwargs["top_p"] == 0.95


class TestAnthropicAssistant:
    def test_no_key_means_unconfigured(self):
        from repolens_core.providers.anthropic import AnthropicAssistant

        assert not AnthropicAssistant(api_key=None).configured

    def test_call_api_joins_text_blocks(self):
        types = pytest.importorskip("anthropic.types")
        from repolens_core.providers.anthropic import AnthropicAssistant

        assistant = AnthropicAssistant(api_key=None)
        assistant.client = MagicMock()
        assistant.client.messages.create.return_value.content = [
            types.TextBlock(type="text", text="Prefer "),
            types.TextBlock(type="text", text="val."),
        ]
        assert assistant._call_api("prompt") == "Prefer val."
        assert assistant.client.messages.create.call_args.kwargs["top_k"] == 40
