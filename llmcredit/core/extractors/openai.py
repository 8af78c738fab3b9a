"""Extractors for OpenAI (and OpenAI-compatible) responses.

Accept either the raw JSON dict or an ``openai`` SDK response object.
"""

from typing import Any

from llmcredit.core.extractor import (
    ExtractionError,
    TokenExtractor,
    TokenUsage,
    read_field,
    read_usage_pair,
)


class OpenAIChatExtractor(TokenExtractor):
    """Chat Completions responses: ``usage.prompt_tokens`` / ``usage.completion_tokens``."""

    provider_name = "openai"
    description = "OpenAI Chat Completions API"
    api_version = "v1"

    def extract(self, response: Any) -> TokenUsage:
        usage = read_field(response, "usage") if response is not None else None
        if not usage:
            raise ExtractionError("OpenAI response missing usage information")

        prompt_tokens, completion_tokens = read_usage_pair(
            usage, "prompt_tokens", "completion_tokens"
        )
        if prompt_tokens is None or completion_tokens is None:
            raise ExtractionError(
                "OpenAI usage must contain 'prompt_tokens' and 'completion_tokens'. "
                f"Got: {usage}"
            )
        return TokenUsage(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)


class OpenAIGenericExtractor(TokenExtractor):
    """Any endpoint following the OpenAI usage pattern; missing counts are 0."""

    provider_name = "openai"
    description = "Generic OpenAI API extractor for various endpoints"

    def extract(self, response: Any) -> TokenUsage:
        usage = read_field(response, "usage") if response is not None else None
        if not usage:
            raise ExtractionError("OpenAI response missing usage information")

        prompt_tokens, completion_tokens = read_usage_pair(
            usage, "prompt_tokens", "completion_tokens"
        )
        return TokenUsage(
            prompt_tokens=prompt_tokens or 0,
            completion_tokens=completion_tokens or 0,
        )


openai_chat_extractor = OpenAIChatExtractor()
openai_generic_extractor = OpenAIGenericExtractor()

OPENAI_EXTRACTORS = {
    "chat": openai_chat_extractor,
    "generic": openai_generic_extractor,
}
