"""
LLM Client using LiteLLM for multi-provider support.

The provider is chosen by the model string, so switching from Gemini to
another provider is a configuration change:
    - "gemini/gemini-1.5-flash" (Google)
    - "gpt-4o-mini" (OpenAI)
    - "claude-3-5-haiku-20241022" (Anthropic)

Every call is bounded by a timeout and every failure surfaces as
LLMServiceError, which callers treat as "use the local fallback".
"""

import asyncio
from typing import Any, Dict, List, Optional

import litellm
from tenacity import retry, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from config.settings import Settings
from core import LLMServiceError, get_logger
from utils.json_utils import extract_json_object

logger = get_logger(__name__)

# Configure LiteLLM
litellm.set_verbose = False  # Set True for debugging


class LLMClient:
    """
    Unified LLM client supporting multiple providers via LiteLLM.

    Usage:
        client = LLMClient(api_key="...", model="gemini/gemini-1.5-flash")
        text = await client.generate("Say hello")
        data = await client.generate_json("Reply with {\"ok\": true}")
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        analysis_model: Optional[str] = None,
        timeout: float = 20.0,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ):
        """Initialize LLM client."""
        self.api_key = api_key
        self.model = model
        self.analysis_model = analysis_model or model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        logger.info("LLM client initialized", model=model, analysis_model=self.analysis_model)

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["LLMClient"]:
        """Build a client, or None when model calls are disabled or unconfigured."""
        if not settings.llm_available:
            logger.warning("No LLM API key configured; using local fallbacks")
            return None
        return cls(
            api_key=settings.LLM_API_KEY,
            model=settings.MODEL_CONVERSATION,
            analysis_model=settings.MODEL_ANALYSIS,
            timeout=settings.LLM_TIMEOUT_SECONDS,
            temperature=settings.LLM_TEMPERATURE,
            max_tokens=settings.LLM_MAX_TOKENS,
        )

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_not_exception_type(asyncio.TimeoutError),
        reraise=True,
    )
    async def _complete(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        temperature: float,
    ) -> str:
        response = await asyncio.wait_for(
            litellm.acompletion(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=self.max_tokens,
                api_key=self.api_key,
            ),
            timeout=self.timeout,
        )
        content = response.choices[0].message.content

        logger.debug(
            "LLM response",
            model=model,
            tokens_used=response.usage.total_tokens if getattr(response, "usage", None) else None,
            response_length=len(content or ""),
            finish_reason=response.choices[0].finish_reason,
        )
        return content or ""

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Generate free text for a single prompt.

        Args:
            prompt: Full prompt text
            model: Model identifier (defaults to the conversation model)
            temperature: Sampling temperature override

        Returns:
            Generated text, stripped

        Raises:
            LLMServiceError: timeout, provider error or empty output
        """
        model = model or self.model
        messages = [{"role": "user", "content": prompt}]

        logger.debug("LLM request", model=model, prompt_length=len(prompt))

        try:
            content = await self._complete(
                model,
                messages,
                self.temperature if temperature is None else temperature,
            )
        except asyncio.TimeoutError:
            logger.warning("LLM request timed out", model=model, timeout=self.timeout)
            raise LLMServiceError(model, f"timed out after {self.timeout}s")
        except Exception as e:
            # LiteLLM maps provider failures onto many exception types
            logger.error("LLM request failed", model=model, error=str(e))
            raise LLMServiceError(model, str(e))

        content = content.strip()
        if not content:
            raise LLMServiceError(model, "empty response")
        return content

    async def generate_json(self, prompt: str, model: Optional[str] = None) -> Dict[str, Any]:
        """
        Generate a response and parse the first JSON object in it.

        Uses the analysis model at a low temperature.

        Raises:
            LLMServiceError: model failure or no parseable JSON object
        """
        model = model or self.analysis_model
        text = await self.generate(prompt, model=model, temperature=0.2)

        data = extract_json_object(text)
        if data is None:
            logger.warning("LLM returned no JSON object", model=model, preview=text[:100])
            raise LLMServiceError(model, "response did not contain a JSON object")
        return data
