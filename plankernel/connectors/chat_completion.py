import asyncio
import functools
import json
import logging
import random
import time
from typing import Any, Dict, List, Optional
from urllib import error, request

from ..errors import AIServiceError, ErrorCode, invalid_response_error
from ..functions.prompt_config import CompletionRequestSettings
from ..interfaces import TextCompletion, TextResult
from ..orchestration import CancellationToken, raise_if_cancelled
from ..services.foundation.settings import get_settings

logger = logging.getLogger(__name__)


class ChatTextResult(TextResult):
    """One ``choices[]`` entry of a chat completion response."""

    def __init__(self, text: str, choice: Dict[str, Any]) -> None:
        self._text = text
        self._choice = choice

    async def get_completion(self, cancellation_token: Optional[CancellationToken] = None) -> str:
        raise_if_cancelled(cancellation_token)
        return self._text

    @property
    def model_result(self) -> Dict[str, Any]:
        return self._choice


class ChatCompletionClient(TextCompletion):
    """
    OpenAI-compatible chat completion backend.

    Responsibilities:
    - Build the request from CompletionRequestSettings
    - Retry 5xx and network failures with exponential backoff and jitter
    - Surface 4xx immediately with the provider's status and body
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[int] = None,
        retries: Optional[int] = None,
        backoff_base: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.llm_api_key
        self.url = url or settings.llm_api_url
        self.model = model or settings.llm_model
        self.timeout = timeout or settings.llm_request_timeout
        self.retries = int(settings.llm_retries if retries is None else retries)
        self.backoff_base = float(settings.llm_backoff_base if backoff_base is None else backoff_base)

    async def get_completions(
        self,
        text: str,
        request_settings: Optional[CompletionRequestSettings],
        cancellation_token: Optional[CancellationToken] = None,
    ) -> List[TextResult]:
        raise_if_cancelled(cancellation_token)
        payload = self._build_payload(text, request_settings or CompletionRequestSettings())
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(None, functools.partial(self._post, payload))
        raise_if_cancelled(cancellation_token)
        return self._parse_choices(response)

    def _build_payload(self, text: str, settings: CompletionRequestSettings) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": text}],
            "temperature": settings.temperature,
            "top_p": settings.top_p,
            "presence_penalty": settings.presence_penalty,
            "frequency_penalty": settings.frequency_penalty,
            "n": settings.results_per_prompt,
        }
        if settings.max_tokens is not None:
            payload["max_tokens"] = settings.max_tokens
        if settings.stop_sequences:
            payload["stop"] = list(settings.stop_sequences)
        return payload

    def _parse_choices(self, response: Dict[str, Any]) -> List[TextResult]:
        choices = response.get("choices") if isinstance(response, dict) else None
        if not choices:
            raise invalid_response_error(service_name=type(self).__name__, detail=str(response)[:500])
        results: List[TextResult] = []
        for choice in choices:
            message = choice.get("message") or {}
            content = message.get("content")
            if content is None:
                content = choice.get("text", "")
            results.append(ChatTextResult(content or "", choice))
        return results

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise AIServiceError(
                "LLM_API_KEY is not set in environment",
                service_name=type(self).__name__,
                error_code=ErrorCode.AI_AUTHENTICATION_FAILED,
            )
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        data = json.dumps(payload).encode("utf-8")
        req = request.Request(self.url, data=data, headers=headers, method="POST")

        for attempt in range(self.retries + 1):
            try:
                with request.urlopen(req, timeout=self.timeout) as resp:
                    resp_text = resp.read().decode("utf-8")
                try:
                    return json.loads(resp_text)
                except json.JSONDecodeError as exc:
                    raise invalid_response_error(
                        service_name=type(self).__name__, detail=resp_text[:500]
                    ) from exc
            except error.HTTPError as e:
                # Retry only for 5xx; surface 4xx immediately
                code = getattr(e, "code", None)
                transient = isinstance(code, int) and 500 <= code < 600
                if transient and attempt < self.retries:
                    self._sleep_before_retry(attempt, e)
                    continue
                try:
                    body = e.read().decode("utf-8")
                except Exception:
                    body = str(e)
                raise AIServiceError(
                    "Chat completion request failed",
                    status_code=code,
                    detail=body,
                    transient=transient,
                    service_name=type(self).__name__,
                    error_code=_error_code_for_status(code),
                    cause=e,
                ) from e
            except AIServiceError:
                raise
            except (error.URLError, OSError) as e:
                # Treat as transient (network) and retry
                if attempt < self.retries:
                    self._sleep_before_retry(attempt, e)
                    continue
                raise AIServiceError(
                    "Chat completion request failed",
                    detail=str(e),
                    transient=True,
                    service_name=type(self).__name__,
                    error_code=ErrorCode.AI_REQUEST_TIMEOUT
                    if isinstance(e, TimeoutError)
                    else ErrorCode.AI_SERVICE_ERROR,
                    cause=e,
                ) from e
        # unreachable: the last attempt either returns or raises
        raise AIServiceError("Chat completion request failed", transient=True)

    def _sleep_before_retry(self, attempt: int, exc: Exception) -> None:
        delay = max(0.0, self.backoff_base * (2**attempt) + random.uniform(0, self.backoff_base / 4.0))
        logger.warning(
            "Chat completion attempt %d failed (%s); retrying in %.2fs", attempt + 1, exc, delay
        )
        time.sleep(delay)

    def config(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "model": self.model,
            "has_api_key": bool(self.api_key),
        }


def _error_code_for_status(code: Optional[int]) -> int:
    if code in (401, 403):
        return ErrorCode.AI_AUTHENTICATION_FAILED
    if code == 429:
        return ErrorCode.AI_RATE_LIMIT_EXCEEDED
    if code == 408:
        return ErrorCode.AI_REQUEST_TIMEOUT
    return ErrorCode.AI_SERVICE_ERROR


__all__ = ["ChatCompletionClient", "ChatTextResult"]
