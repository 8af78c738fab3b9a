"""Extractor for Anthropic Messages API responses."""

from typing import Any

from llmcredit.core.extractor import (
    ExtractionError,
    TokenExtractor,
    TokenUsage,
    read_field,
    read_usage_pair,
)


class AnthropicMessagesExtractor(TokenExtractor):
    """Maps ``usage.input_tokens`` / ``usage.output_tokens`` to prompt/completion.

    Cache read and creation tokens are billed as prompt tokens.
    """

    provider_name = "anthropic"
    description = "Anthropic Messages API"
    api_version = "2023-06-01"

    def extract(self, response: Any) -> TokenUsage:
        usage = read_field(response, "usage") if response is not None else None
        if not usage:
            raise ExtractionError("Anthropic response missing usage information")

        inp, out = read_usage_pair(usage, "input_tokens", "output_tokens")
        if inp is None or out is None:
            raise ExtractionError(
                "Anthropic usage must contain 'input_tokens' and 'output_tokens'. "
                f"Got: {usage}"
            )
        cache_read = read_field(usage, "cache_read_input_tokens") or 0
        cache_creation = read_field(usage, "cache_creation_input_tokens") or 0
        return TokenUsage(
            prompt_tokens=inp + cache_read + cache_creation,
            completion_tokens=out,
        )


anthropic_messages_extractor = AnthropicMessagesExtractor()
