"""
Gemini summary generator.

Wraps a Gemini model configured with the project-health system instruction.
Built once at application startup and handed to the summary service.

Supports two backends:
  1. Vertex AI SDK (production) - uses GOOGLE_CLOUD_PROJECT + service account
  2. google-generativeai (local dev) - uses GOOGLE_API_KEY
"""

from __future__ import annotations

from typing import Any, Protocol

from mission_control.config import (
    GEMINI_LOCATION,
    GEMINI_MODEL,
    GOOGLE_API_KEY,
    GOOGLE_CLOUD_PROJECT,
    LLM_MAX_TOKENS,
    LLM_TIMEOUT_SECONDS,
)
from mission_control.errors import SummaryGenerationError
from mission_control.observability.logging import get_logger
from mission_control.observability.telemetry import counter, log_event, time_block

logger = get_logger(__name__)


class GeminiInitializationError(RuntimeError):
    """Raised when Gemini model cannot be initialized."""


class SummaryGenerator(Protocol):
    """Anything that turns a user prompt into summary text."""

    def generate(self, prompt: str) -> str: ...


def first_text_part(response: Any) -> str:
    """
    Extract the first text part of a Gemini response.

    Raises:
        SummaryGenerationError: If the response has no candidate text
    """
    try:
        text = response.candidates[0].content.parts[0].text
    except (AttributeError, IndexError, TypeError, ValueError) as e:
        raise SummaryGenerationError(f"Malformed model response: {e}") from e

    if not text or not text.strip():
        raise SummaryGenerationError("Model returned an empty summary")
    return text.strip()


class GeminiSummaryGenerator:
    """Calls Gemini with a fixed system instruction and one user prompt."""

    def __init__(self, model: Any, backend: str, request_options: dict[str, Any] | None = None):
        self._model = model
        self.backend = backend
        self._request_options = request_options or {}

    def generate(self, prompt: str) -> str:
        """
        Generate summary text for a prompt.

        Side Effects:
            - Calls Gemini API
            - Increments telemetry counters

        Raises:
            SummaryGenerationError: On any SDK error or unusable response
        """
        try:
            with time_block("llm.summary.latency"):
                response = self._model.generate_content(prompt, **self._request_options)
        except Exception as e:
            counter("llm.summary.error")
            log_event("llm.summary.error", error=str(e), model=GEMINI_MODEL, backend=self.backend)
            raise SummaryGenerationError(f"Gemini call failed: {e}") from e

        text = first_text_part(response)
        counter("llm.summary.success")
        return text



def _create_vertex_generator(system_instruction: str) -> GeminiSummaryGenerator:
    import vertexai
    from vertexai.generative_models import GenerationConfig, GenerativeModel

    vertexai.init(project=GOOGLE_CLOUD_PROJECT, location=GEMINI_LOCATION)
    model = GenerativeModel(
        GEMINI_MODEL,
        system_instruction=[system_instruction],
        generation_config=GenerationConfig(max_output_tokens=LLM_MAX_TOKENS),
    )

    logger.info(
        "Initialized Gemini model (Vertex AI): project=%s, location=%s, model=%s",
        GOOGLE_CLOUD_PROJECT,
        GEMINI_LOCATION,
        GEMINI_MODEL,
    )
    return GeminiSummaryGenerator(model, backend="vertexai")


def _create_genai_generator(system_instruction: str) -> GeminiSummaryGenerator:
    import google.generativeai as genai

    if not GOOGLE_API_KEY:
        raise GeminiInitializationError(
            "Neither GOOGLE_CLOUD_PROJECT nor GOOGLE_API_KEY is set."
        )

    genai.configure(api_key=GOOGLE_API_KEY)
    model = genai.GenerativeModel(
        GEMINI_MODEL,
        system_instruction=system_instruction,
        generation_config={"max_output_tokens": LLM_MAX_TOKENS},
    )

    logger.info("Initialized Gemini model (google-generativeai): model=%s", GEMINI_MODEL)
    return GeminiSummaryGenerator(
        model,
        backend="google-generativeai",
        request_options={"request_options": {"timeout": LLM_TIMEOUT_SECONDS}},
    )


def create_summary_generator(system_instruction: str) -> GeminiSummaryGenerator:
    """
    Create a Gemini-backed summary generator.

    Uses the Vertex AI SDK when GOOGLE_CLOUD_PROJECT is set (production).
    Falls back to google-generativeai with GOOGLE_API_KEY for local development.

    Raises:
        GeminiInitializationError: If no backend can be initialized
    """
    if GOOGLE_CLOUD_PROJECT:
        try:
            return _create_vertex_generator(system_instruction)
        except ImportError:
            logger.info("Vertex AI SDK not installed, trying google-generativeai fallback")

    try:
        return _create_genai_generator(system_instruction)
    except ImportError as e:
        raise GeminiInitializationError(
            "No Gemini SDK available. Install google-cloud-aiplatform or google-generativeai."
        ) from e
