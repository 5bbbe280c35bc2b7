# services/gemini.py
import logging
import random
import time

import httpx
from google import genai
from google.genai import types, errors as gerrors

from config import settings
from core.errors import GenerationTransportFailure

_LOG = logging.getLogger(__name__)


def _rate_limited(exc: gerrors.APIError) -> bool:
    return getattr(exc, "code", None) == 429 or getattr(exc, "status", None) == "RESOURCE_EXHAUSTED"


class GeminiClient:
    """
    `generate(prompt) -> str` backed by the google-genai SDK.

    Rate limits (429 / RESOURCE_EXHAUSTED) are retried with exponential
    backoff plus jitter. Everything else, including timeouts and exhausted
    retries, surfaces as `GenerationTransportFailure`.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        timeout_ms: int | None = None,
        max_retries: int | None = None,
    ) -> None:
        key = api_key or settings.gemini_api_key
        if not key:
            raise RuntimeError("GEMINI_API_KEY not set in environment")

        self.model = model or settings.gemini_model
        self.temperature = settings.gemini_temperature if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or settings.gemini_max_output_tokens
        self.max_retries = max_retries or settings.gemini_max_retries
        self._client = genai.Client(
            api_key=key,
            http_options=types.HttpOptions(timeout=timeout_ms or settings.gemini_timeout_ms),
        )

    # ───────────── Generation (sync + retry) ─────────────
    def generate(self, prompt: str) -> str:
        """Run a completion and return the model's text response."""
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            response_mime_type="application/json",
        )
        for attempt in range(self.max_retries):
            try:
                resp = self._client.models.generate_content(
                    model=self.model,
                    contents=[prompt],
                    config=config,
                )
                return resp.text or ""
            except gerrors.APIError as e:
                if _rate_limited(e) and attempt < self.max_retries - 1:
                    backoff = (2 ** attempt) + random.random()
                    _LOG.warning("429 from Gemini, retrying in %.1fs", backoff)
                    time.sleep(backoff)
                    continue
                _LOG.error("Gemini generation failed: %s", e)
                raise GenerationTransportFailure(f"Gemini API error: {e}") from e
            except httpx.HTTPError as e:
                _LOG.error("Gemini transport error: %s", e)
                raise GenerationTransportFailure(f"Gemini transport error: {e}") from e
