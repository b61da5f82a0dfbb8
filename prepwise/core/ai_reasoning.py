"""
AI Reasoning Layer for PrepWise

Handles all outbound AI operations:
- Question-set generation
- Answer-set evaluation

Talks to an OpenAI-compatible chat-completions endpoint (Groq by default).
Integrated with Langfuse for observability and tracing.

This layer only transports prompts and raw payloads. Decoding, validation
and fallback belong to the question bank and evaluation engine, which treat
every failure raised here as a signal to use their deterministic paths.
"""

import logging
from typing import Any, Protocol

import httpx
from langfuse import Langfuse

from prepwise.config.settings import Settings, get_settings
from prepwise.models.assessment import AssessmentConfig
from prepwise.models.question import Question, QuestionGenerationRequest
from prepwise.models.session import AnswerRecord
from prepwise.prompts.generator import GeneratorPrompts
from prepwise.prompts.evaluator import EvaluatorPrompts

logger = logging.getLogger(__name__)


class AIResponseError(Exception):
    """Raised when the provider returns an unusable response."""
    pass


class QuestionGenerationPort(Protocol):
    """Anything that can answer a question-set generation request."""

    async def generate_questions(self, request: QuestionGenerationRequest) -> Any: ...


class EvaluationPort(Protocol):
    """Anything that can answer an answer-set evaluation request."""

    async def evaluate_answers(
        self,
        questions: list[Question],
        answers: dict[str, AnswerRecord],
        config: AssessmentConfig,
    ) -> Any: ...


class AIReasoningLayer:
    """
    Central AI component for question generation and evaluation.

    Model Selection:
    - Generation model: high temperature for question variety
    - Evaluation model: low temperature for consistent scoring

    Observability:
    - Langfuse integration for tracing all LLM calls
    """

    def __init__(self, settings: Settings | None = None):
        """Initialize AI reasoning layer with provider configuration."""
        self.settings = settings or get_settings()
        self.base_url = self.settings.llm_base_url.rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {self.settings.llm_api_key}",
            "Content-Type": "application/json",
        }

        # HTTP client for API calls
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.settings.llm_timeout_seconds,
        )

        # Prompt templates
        self.generator_prompts = GeneratorPrompts()
        self.evaluator_prompts = EvaluatorPrompts()

        # Initialize Langfuse for observability
        self.langfuse = None
        if self.settings.langfuse_enabled:
            if self.settings.langfuse_secret_key and self.settings.langfuse_public_key:
                try:
                    self.langfuse = Langfuse(
                        secret_key=self.settings.langfuse_secret_key,
                        public_key=self.settings.langfuse_public_key,
                        host=self.settings.langfuse_base_url,
                    )
                    logger.info("Langfuse initialized for LLM observability")
                except Exception as e:
                    logger.warning(f"Failed to initialize Langfuse: {e}")
            else:
                logger.info("Langfuse keys not configured, tracing disabled")

    async def close(self):
        """Close the HTTP client and flush Langfuse."""
        await self.client.aclose()
        if self.langfuse:
            try:
                self.langfuse.flush()
            except Exception as e:
                logger.warning(f"Failed to flush Langfuse: {e}")

    # =========================================================================
    # CORE AI OPERATIONS
    # =========================================================================

    def _extract_content(self, result: dict) -> str:
        """Extract text content from API response, handling list/dict formats."""
        content = result.get("choices", [{}])[0].get("message", {}).get("content", "")

        # Handle case where content is a list (multi-part response)
        if isinstance(content, list):
            text_parts = []
            for part in content:
                if isinstance(part, str):
                    text_parts.append(part)
                elif isinstance(part, dict) and "text" in part:
                    text_parts.append(part["text"])
            content = "".join(text_parts)

        return content if isinstance(content, str) else str(content)

    async def _call_llm(
        self,
        prompt: str,
        system_prompt: str,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """
        Make a single chat-completions call requesting JSON output.

        Args:
            prompt: The user prompt to send
            system_prompt: System instructions
            model: Model name
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature

        Returns:
            Model response text

        Raises:
            httpx.HTTPError: On transport or status errors
            AIResponseError: When the response carries no content
        """
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
            "response_format": {"type": "json_object"},
        }

        try:
            response = await self.client.post(self.settings.llm_chat_endpoint, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"LLM API error: {e}")
            raise

        content = self._extract_content(response.json())
        if not content.strip():
            raise AIResponseError("No content in LLM response")
        return content

    # =========================================================================
    # TRACING
    # =========================================================================

    def _start_span(self, name: str, metadata: dict[str, Any]):
        """Start a Langfuse span, or return None when tracing is off."""
        if not self.langfuse:
            return None
        try:
            return self.langfuse.start_span(name=name, metadata=metadata)
        except Exception as lf_err:
            logger.warning(f"Langfuse span start failed: {lf_err}")
            return None

    def _end_span(self, span, output: dict[str, Any]) -> None:
        """Record output on a span and close it."""
        if span is None:
            return
        try:
            span.update(output=output)
            span.end()
        except Exception as lf_err:
            logger.warning(f"Langfuse span end failed: {lf_err}")

    # =========================================================================
    # QUESTION GENERATION
    # =========================================================================

    async def generate_questions(self, request: QuestionGenerationRequest) -> str:
        """
        Request a complete question set.

        Args:
            request: Role, skills, proficiency and per-type quotas

        Returns:
            Raw JSON text as produced by the model
        """
        span = self._start_span(
            "generate_question_set",
            {
                "role": request.role,
                "target_count": request.target_count,
                "quotas": {t.value: c for t, c in request.type_quotas.items()},
            },
        )

        prompt = self.generator_prompts.generate_question_set_prompt(request)
        logger.info(
            f"Requesting {request.target_count} questions for {request.role} | "
            f"prompt length: {len(prompt)}"
        )

        try:
            content = await self._call_llm(
                prompt,
                system_prompt=self.generator_prompts.SYSTEM_CONTEXT,
                model=self.settings.llm_generation_model,
                max_tokens=self.settings.llm_generation_max_tokens,
                temperature=self.settings.llm_generation_temperature,
            )
        except Exception as e:
            self._end_span(span, {"error": str(e)})
            raise

        self._end_span(span, {"response_length": len(content)})
        return content

    # =========================================================================
    # ANSWER EVALUATION
    # =========================================================================

    async def evaluate_answers(
        self,
        questions: list[Question],
        answers: dict[str, AnswerRecord],
        config: AssessmentConfig,
    ) -> str:
        """
        Request an evaluation of every answer in a session.

        Args:
            questions: The session's question set
            answers: Answer records keyed by question ID
            config: The assessment configuration

        Returns:
            Raw JSON text as produced by the model
        """
        span = self._start_span(
            "evaluate_answers",
            {
                "role": config.role,
                "question_count": len(questions),
                "answered": sum(1 for a in answers.values() if a.is_answered),
            },
        )

        prompt = self.evaluator_prompts.generate_evaluation_prompt(questions, answers, config)

        try:
            content = await self._call_llm(
                prompt,
                system_prompt=self.evaluator_prompts.SYSTEM_CONTEXT,
                model=self.settings.llm_evaluation_model,
                max_tokens=self.settings.llm_evaluation_max_tokens,
                temperature=self.settings.llm_evaluation_temperature,
            )
        except Exception as e:
            self._end_span(span, {"error": str(e)})
            raise

        self._end_span(span, {"response_length": len(content)})
        return content
