"""Bundled token extractors for common provider response formats."""

from llmcredit.core.extractor import TokenExtractor
from llmcredit.core.extractors.openai import (
    OpenAIChatExtractor,
    OpenAIGenericExtractor,
    openai_chat_extractor,
    openai_generic_extractor,
    OPENAI_EXTRACTORS,
)
from llmcredit.core.extractors.anthropic import (
    AnthropicMessagesExtractor,
    anthropic_messages_extractor,
)

EXTRACTORS = {
    "openai_chat": openai_chat_extractor,
    "openai_generic": openai_generic_extractor,
    "anthropic_messages": anthropic_messages_extractor,
}


def get_extractor(name: str) -> TokenExtractor:
    """Look up a bundled extractor by name.

    Raises:
        ValueError: If name is not a bundled extractor
    """
    key = name.lower().strip()
    if key not in EXTRACTORS:
        raise ValueError(
            f"Unknown extractor: {name}. Supported: {', '.join(sorted(EXTRACTORS))}"
        )
    return EXTRACTORS[key]


__all__ = [
    "OpenAIChatExtractor",
    "OpenAIGenericExtractor",
    "AnthropicMessagesExtractor",
    "openai_chat_extractor",
    "openai_generic_extractor",
    "anthropic_messages_extractor",
    "OPENAI_EXTRACTORS",
    "EXTRACTORS",
    "get_extractor",
]
