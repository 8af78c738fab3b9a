"""Token extractor abstraction.

An extractor reads actual token usage out of a provider-specific response.
The SDK depends on TokenExtractor only; implementations live under
llmcredit.core.extractors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple


class ExtractionError(ValueError):
    """Raised when a response does not carry the usage data an extractor expects."""
    pass


@dataclass
class TokenUsage:
    """Actual token counts reported by a provider."""

    prompt_tokens: int
    completion_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class TokenExtractor(ABC):
    """Abstract base for token extractors. Implement this to support a new response shape."""

    provider_name: str = ""
    description: Optional[str] = None
    api_version: Optional[str] = None

    @abstractmethod
    def extract(self, response: Any) -> TokenUsage:
        """Read prompt/completion token counts from a response.

        Args:
            response: Whatever the caller's invocation function returned

        Returns:
            TokenUsage

        Raises:
            ExtractionError: If the response is missing usage information
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider_name!r})"


class CallableExtractor(TokenExtractor):
    """Adapts a plain function returning (prompt_tokens, completion_tokens) or TokenUsage."""

    def __init__(
        self,
        provider_name: str,
        func: Callable[[Any], Any],
        description: Optional[str] = None,
        api_version: Optional[str] = None,
    ):
        self.provider_name = provider_name
        self.description = description
        self.api_version = api_version
        self._func = func

    def extract(self, response: Any) -> TokenUsage:
        result = self._func(response)
        if isinstance(result, TokenUsage):
            return result
        if isinstance(result, tuple) and len(result) == 2:
            prompt_tokens, completion_tokens = result
            return TokenUsage(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
        raise ExtractionError(
            f"Extractor for {self.provider_name} must return TokenUsage or "
            f"(prompt_tokens, completion_tokens), got: {result!r}"
        )


def read_field(obj: Any, name: str) -> Any:
    """Read a field from a dict or an SDK response object."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def read_usage_pair(usage: Any, prompt_key: str, completion_key: str) -> Tuple[Any, Any]:
    return read_field(usage, prompt_key), read_field(usage, completion_key)
