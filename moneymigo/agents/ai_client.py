"""
External AI Client for MoneyMigo

Sends an insight prompt to Gemini and returns the generated text.

CONTRACT:
- One generate_content call per attempt
- HTTP 503 (overloaded) and 429 with a quota message are retried with
  exponential backoff plus jitter, up to GeminiSettings.max_attempts
- Any other failure, or running out of attempts, returns a canned
  fallback text; the caller never sees the exception
- A missing or rejected API key is the one fatal case: it raises
  AIConfigurationError so the UI can ask the user to fix Settings

    Idle -> Requesting -> Success
                       -> Retrying -> Requesting
                       -> FallbackReturned

The API key arrives through the GeminiSettings handed to the client.
"""

from datetime import date
from enum import Enum
from typing import Any, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from moneymigo.agents.prompts import AIRequestType, FinancialSnapshot, build_prompt
from moneymigo.audit import AuditLogger
from moneymigo.config import GeminiSettings
from moneymigo.models.audit import AuditEventBuilder


class AIServiceError(Exception):
    """Base exception for AI client errors."""
    pass


class AIConfigurationError(AIServiceError):
    """The API key is missing or was rejected. Not retried, not absorbed."""
    pass


class EmptyResponseError(AIServiceError):
    """Gemini answered without any text (e.g. a blocked candidate)."""
    pass


class AIOutcome(str, Enum):
    SUCCESS = "success"
    FALLBACK = "fallback"


class AIResponse(BaseModel):
    """What the caller gets back from every AI request."""

    request_type: AIRequestType
    text: str
    outcome: AIOutcome
    attempts: int = Field(ge=0)
    error_message: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.outcome == AIOutcome.FALLBACK


MISSING_KEY_MESSAGE = (
    "AI API key not configured. Please set your Gemini API key in Settings."
)
INVALID_KEY_MESSAGE = (
    "Gemini rejected the API key. Please check your Gemini API key in Settings."
)

FALLBACK_RESPONSES = {
    AIRequestType.INSIGHTS: """Unable to generate AI insights at this time. Here are some basic observations:

• Add more transactions to get detailed AI-powered insights
• Track your spending patterns across different categories
• Set up budgets to monitor your financial goals
• Regular income tracking helps with better predictions

Please check your API key configuration and internet connection.""",
    AIRequestType.STORY: """Your financial journey is just beginning! 📊

While I couldn't generate a personalized story right now, here's what I can see:
• Every transaction you record is a step toward better financial awareness
• Consistent tracking leads to powerful insights
• Your future self will thank you for starting this journey

Add more transactions and configure your AI settings to unlock personalized financial stories!""",
    AIRequestType.PREDICTIONS: """Unable to generate AI predictions right now.

To get accurate predictions:
• Ensure you have at least 2 weeks of transaction data
• Check your API key configuration in Settings
• Verify your internet connection

With sufficient data, AI can predict:
• Monthly spending trends
• Budget performance
• Goal achievement timelines
• Personalized recommendations""",
}


def fallback_response(request_type: AIRequestType) -> str:
    return FALLBACK_RESPONSES[AIRequestType(request_type)]


def is_transient_error(exc: BaseException) -> bool:
    """Overload (503) or quota exhaustion (429) - worth another attempt."""
    if isinstance(exc, google_exceptions.ServiceUnavailable):
        return True
    if isinstance(exc, (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests)):
        return "quota" in str(exc).lower()
    return False


def is_key_error(exc: BaseException) -> bool:
    """The request was refused because of the API key itself."""
    if isinstance(exc, (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated)):
        return True
    if isinstance(exc, google_exceptions.InvalidArgument):
        return "api key" in str(exc).lower()
    return False


def _extract_text(response: Any) -> str:
    try:
        text = response.text
    except ValueError as e:
        # The SDK raises ValueError when no candidate carries text
        raise EmptyResponseError(str(e)) from e
    if not text or not text.strip():
        raise EmptyResponseError("No response from AI")
    return text.strip()


class GeminiInsightClient:
    """
    Gemini-backed generator for insights, stories and predictions.

    BOUNDARIES:
    - Only ever sees prompts built from the user's own aggregated numbers
    - Never persists the raw response
    - Transient failures degrade to canned text
    """

    def __init__(
        self,
        settings: GeminiSettings,
        model: Optional[Any] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Args:
            settings: Gemini configuration, including the API key.
            model: Pre-built model exposing generate_content_async.
                   Built lazily from settings when omitted.
            audit_logger: Where retries and fallbacks are recorded.
        """
        self._settings = settings
        self._model = model
        self._audit = audit_logger or AuditLogger("moneymigo.ai")

    @property
    def has_api_key(self) -> bool:
        return self._model is not None or self._settings.has_api_key

    def _get_model(self) -> Any:
        """Configure Google Generative AI and build the model on first use."""
        if self._model is None:
            if not self._settings.has_api_key:
                raise AIConfigurationError(MISSING_KEY_MESSAGE)
            genai.configure(api_key=self._settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "top_k": self._settings.top_k,
                    "top_p": self._settings.top_p,
                    "max_output_tokens": self._settings.max_output_tokens,
                },
            )
        return self._model

    def _retrying(self, request_type: AIRequestType) -> AsyncRetrying:
        def log_retry(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            sleep = retry_state.next_action.sleep if retry_state.next_action else 0.0
            self._audit.emit(AuditEventBuilder.ai_request_retried(
                request_type=request_type.value,
                attempt=retry_state.attempt_number,
                sleep_seconds=sleep,
                error_message=str(exc),
            ))

        return AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=wait_exponential_jitter(
                initial=self._settings.retry_initial_delay,
                max=self._settings.retry_max_delay,
                jitter=self._settings.retry_jitter,
            ),
            retry=retry_if_exception(is_transient_error),
            before_sleep=log_retry,
            reraise=True,
        )

    async def generate(
        self,
        prompt: str,
        request_type: AIRequestType = AIRequestType.INSIGHTS,
        user_id: Optional[str] = None,
    ) -> AIResponse:
        """
        Send one prompt, retrying transient failures.

        Raises:
            AIConfigurationError: key missing or rejected
        """
        request_type = AIRequestType(request_type)
        model = self._get_model()
        attempts = 0

        try:
            async for attempt in self._retrying(request_type):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    response = await model.generate_content_async(prompt)
                    text = _extract_text(response)
        except Exception as e:
            if is_key_error(e):
                raise AIConfigurationError(INVALID_KEY_MESSAGE) from e
            self._audit.emit(AuditEventBuilder.ai_fallback_returned(
                request_type=request_type.value,
                attempts=attempts,
                error_message=str(e),
                user_id=user_id,
            ))
            return AIResponse(
                request_type=request_type,
                text=fallback_response(request_type),
                outcome=AIOutcome.FALLBACK,
                attempts=attempts,
                error_message=str(e),
            )

        self._audit.emit(AuditEventBuilder.ai_request_succeeded(
            request_type=request_type.value,
            attempts=attempts,
            user_id=user_id,
        ))
        return AIResponse(
            request_type=request_type,
            text=text,
            outcome=AIOutcome.SUCCESS,
            attempts=attempts,
        )

    async def generate_for(
        self,
        snapshot: FinancialSnapshot,
        request_type: AIRequestType,
        today: date,
        currency: str = "₹",
        recent_days: int = 30,
        user_id: Optional[str] = None,
    ) -> AIResponse:
        """
        Build the prompt for `snapshot` and generate.

        With no transactions there is nothing to narrate, so the canned
        response is returned without a network call.
        """
        request_type = AIRequestType(request_type)
        if not self.has_api_key:
            raise AIConfigurationError(MISSING_KEY_MESSAGE)

        if not snapshot.transactions:
            return AIResponse(
                request_type=request_type,
                text=fallback_response(request_type),
                outcome=AIOutcome.FALLBACK,
                attempts=0,
            )

        prompt = build_prompt(
            snapshot,
            request_type,
            today,
            currency=currency,
            recent_days=recent_days,
        )
        return await self.generate(prompt, request_type, user_id=user_id)

    async def generate_insights(self, snapshot: FinancialSnapshot, today: date, **kwargs) -> AIResponse:
        return await self.generate_for(snapshot, AIRequestType.INSIGHTS, today, **kwargs)

    async def generate_story(self, snapshot: FinancialSnapshot, today: date, **kwargs) -> AIResponse:
        return await self.generate_for(snapshot, AIRequestType.STORY, today, **kwargs)

    async def generate_predictions(self, snapshot: FinancialSnapshot, today: date, **kwargs) -> AIResponse:
        return await self.generate_for(snapshot, AIRequestType.PREDICTIONS, today, **kwargs)
