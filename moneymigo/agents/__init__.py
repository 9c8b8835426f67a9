"""AI agents package."""

from moneymigo.agents.ai_client import (
    AIConfigurationError,
    AIOutcome,
    AIResponse,
    AIServiceError,
    EmptyResponseError,
    GeminiInsightClient,
    fallback_response,
    is_key_error,
    is_transient_error,
)
from moneymigo.agents.prompts import (
    AIRequestType,
    FinancialSnapshot,
    build_context,
    build_prompt,
)

__all__ = [
    "AIConfigurationError",
    "AIOutcome",
    "AIRequestType",
    "AIResponse",
    "AIServiceError",
    "EmptyResponseError",
    "FinancialSnapshot",
    "GeminiInsightClient",
    "build_context",
    "build_prompt",
    "fallback_response",
    "is_key_error",
    "is_transient_error",
]
