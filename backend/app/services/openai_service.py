"""
Mindtrail Backend - OpenAI Chat Completion Client
==================================================

What:  Concrete ChatCompletionClient calling the OpenAI chat-completions
       endpoint over HTTP.
How:   One pooled `httpx.AsyncClient` per process; a POST per call with the
       whole transcript; the call is bounded by SUMMARY_TIMEOUT_SECONDS and
       transport errors are retried by tenacity up to SUMMARY_MAX_ATTEMPTS
       (default 1, i.e. a single attempt).
Who:   Created once at import; used by SummaryService.

Failure translation (all raised as SummarizationError with a reason):
    no API key           → "OPENAI_API_KEY is not configured"
    timeout              → "timeout after Ns"
    connection failure   → "transport error: ..."
    non-2xx status       → "HTTP 429: ..." (body truncated)
    unexpected JSON      → "malformed completion payload"
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import SummarizationError
from app.services.llm_base import ChatCompletionClient

logger = logging.getLogger(__name__)

# Longest slice of an upstream error body kept for logs and the stored reason
MAX_ERROR_BODY = 300


class OpenAIChatClient(ChatCompletionClient):
    """
    OpenAI chat-completions client.

    Holds no conversation state: the transcript is supplied on every call.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            api_key / model / api_url / timeout_seconds: override settings
                (used in tests).
            http_client: inject a client, e.g. one built on httpx.MockTransport.
        """
        self.api_key = settings.openai_api_key if api_key is None else api_key
        self.model = model or settings.openai_model
        self.api_url = api_url or settings.openai_api_url
        self.timeout_seconds = timeout_seconds or settings.summary_timeout_seconds
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds)
        )

        logger.info(
            "OpenAIChatClient initialized with model=%s, timeout=%.0fs, max_attempts=%d",
            self.model,
            self.timeout_seconds,
            settings.summary_max_attempts,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        """
        POST the transcript and return the assistant reply text.

        Raises:
            SummarizationError: see module docstring for the reasons.
        """
        if not self.configured:
            raise SummarizationError(reason="OPENAI_API_KEY is not configured")

        call_id = str(uuid.uuid4())[:8]
        payload = {"model": self.model, "messages": list(messages)}
        start_time = time.perf_counter()

        try:
            response = await asyncio.wait_for(
                self._post_with_retry(payload), timeout=self.timeout_seconds
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("[%s] OpenAI call timed out after %.0fs", call_id, self.timeout_seconds)
            raise SummarizationError(reason=f"timeout after {self.timeout_seconds:.0f}s")
        except httpx.HTTPError as e:
            logger.warning("[%s] OpenAI transport error: %s", call_id, str(e))
            raise SummarizationError(reason=f"transport error: {type(e).__name__}: {e}")

        duration_ms = (time.perf_counter() - start_time) * 1000

        if response.status_code >= 400:
            body = response.text[:MAX_ERROR_BODY]
            logger.warning(
                "[%s] OpenAI returned HTTP %d in %.0fms: %s",
                call_id,
                response.status_code,
                duration_ms,
                body,
            )
            raise SummarizationError(reason=f"HTTP {response.status_code}: {body}")

        text = self._extract_text(response)
        logger.info(
            "[%s] OpenAI completion in %.0fms, %d turns in, %d chars out",
            call_id,
            duration_ms,
            len(messages),
            len(text),
        )
        return text

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.summary_max_attempts),
        wait=wait_exponential_jitter(initial=1, max=5, jitter=1),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _post_with_retry(self, payload: Dict[str, Any]) -> httpx.Response:
        return await self._http.post(self.api_url, json=payload, headers=self._headers())

    @staticmethod
    def _extract_text(response: httpx.Response) -> str:
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise SummarizationError(reason="malformed completion payload")
        if not isinstance(content, str) or not content.strip():
            raise SummarizationError(reason="empty completion")
        return content.strip()

    async def health_check(self) -> bool:
        """
        List models to verify the API key and connectivity (no token cost).
        """
        if not self.configured:
            return False
        models_url = self.api_url.rsplit("/chat/completions", 1)[0] + "/models"
        try:
            response = await self._http.get(models_url, headers=self._headers())
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning("OpenAI health check failed: %s", str(e))
            return False

    async def close(self) -> None:
        await self._http.aclose()


# ── Singleton Instance ────────────────────────────────────────────────────
# Shares the connection pool across requests; carries no transcript
openai_client = OpenAIChatClient()
