"""LLM Provider Client Module

Chat-completion access to the LLM provider through the OpenAI SDK. The
default endpoint is Groq's OpenAI-compatible API; any compatible endpoint
works by changing ``ProviderConfig.base_url``.

Key features:
  - Explicit configuration object (no process-wide key lookup)
  - Per-request timeout enforced by the async client
  - Transparent fallback from the primary to a smaller model when the
    primary is rate limited
  - All SDK failures surfaced as ``ProviderError``
"""

import logging
import time
from typing import Optional

import openai
from openai import AsyncOpenAI

from .config import ProviderConfig
from .errors import ProviderError

logger = logging.getLogger(__name__)


class LLMProvider:
    """Completion capability injected into the analyzer and generators."""

    def __init__(self, config: ProviderConfig, client: Optional[AsyncOpenAI] = None):
        self.config = config
        if client is None:
            if not config.api_key or len(config.api_key) < 5:
                raise ProviderError(
                    "LLM API key is missing. Set LLM_API_KEY (or GROQ_API_KEY) in .env."
                )
            client = AsyncOpenAI(
                api_key=config.api_key,
                base_url=config.base_url,
                timeout=config.timeout_seconds,
                max_retries=config.max_client_retries,
            )
        self._client = client

    async def complete(
        self,
        prompt: str,
        *,
        system: str,
        temperature: float = 0.3,
        max_tokens: int = 3000,
        json_mode: bool = True,
    ) -> str:
        """
        Send one system + user message pair and return the reply text.

        If the primary model is rate limited (and the quota is not simply
        exhausted), the same request is sent once to the fallback model.

        Args:
            prompt: User-turn content
            system: System instruction
            temperature: Sampling temperature
            max_tokens: Response token cap
            json_mode: Ask the provider for a JSON-object response

        Returns:
            Raw reply content ("" when the provider returns no content)

        Raises:
            ProviderError: On transport, auth, timeout or rate-limit failures
        """
        model = self.config.primary_model
        try:
            return await self._create(model, prompt, system, temperature, max_tokens, json_mode)
        except openai.RateLimitError as e:
            fallback = self.config.fallback_model
            if _is_insufficient_quota(e) or not fallback or fallback == model:
                logger.error("Rate limited on %s with no fallback available: %s", model, e)
                raise ProviderError(f"AI provider rate limit reached: {e}") from e

            logger.warning(
                "Primary model %s rate limited, falling back to %s. Error: %s",
                model,
                fallback,
                e,
            )
            try:
                return await self._create(
                    fallback, prompt, system, temperature, max_tokens, json_mode
                )
            except openai.OpenAIError as fallback_error:
                logger.error("Fallback model %s failed: %s", fallback, fallback_error)
                raise ProviderError(
                    f"AI analysis failed: {fallback_error}"
                ) from fallback_error
        except openai.OpenAIError as e:
            logger.error("LLM request to %s failed: %s", model, e)
            raise ProviderError(f"AI analysis failed: {e}") from e

    async def _create(
        self,
        model: str,
        prompt: str,
        system: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> str:
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        start_time = time.time()
        logger.debug("Calling chat completions: model=%s, prompt_chars=%d", model, len(prompt))

        response = await self._client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""

        logger.info(
            "✓ %s responded in %.2fs (%d chars)",
            model,
            time.time() - start_time,
            len(content),
        )
        return content


def _is_insufficient_quota(error: openai.RateLimitError) -> bool:
    # Pure quota exhaustion won't clear up on another model of the same account
    return getattr(error, "code", None) == "insufficient_quota" or "insufficient_quota" in str(error)
