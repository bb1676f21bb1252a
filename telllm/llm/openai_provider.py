"""
OpenAI-compatible LLM Provider.
Talks to any server exposing POST {base_url}/chat/completions
(OpenAI, llama.cpp server, vLLM, Ollama's /v1 shim, ...).
"""

import httpx
import logging
import time
from typing import Optional, List, Dict, Any

from ..errors import LLMProtocolError, LLMUnavailableError
from .base import LLMProvider, LLMMessage, LLMResponse

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """
    Provider for OpenAI-style chat/completions endpoints.
    The API key is optional; local servers usually don't need one.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "default",
        base_url: str = "http://localhost:8080/v1",
        default_temperature: Optional[float] = None,
        default_max_tokens: Optional[int] = None,
        timeout: float = 120.0,
    ):
        super().__init__(api_key, model, base_url.rstrip("/"), default_temperature, default_max_tokens)
        self.timeout = timeout

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _build_payload(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float],
        max_tokens: Optional[int],
        **kwargs
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": kwargs.get("model", self.model),
            "messages": self._format_messages(messages),
            "stream": False,
        }
        temperature = temperature if temperature is not None else self.default_temperature
        if temperature is not None:
            payload["temperature"] = temperature
        max_tokens = max_tokens or self.default_max_tokens
        if max_tokens:
            payload["max_tokens"] = max_tokens
        return payload

    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """Send request to the Chat Completions endpoint."""
        start_time = time.time()
        url = f"{self.base_url}/chat/completions"
        payload = self._build_payload(messages, temperature, max_tokens, **kwargs)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"LLM API call starting: model={payload['model']}, {len(messages)} messages"
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers())
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._log_failure(payload, start_time, e)
            body = e.response.text[:200] if e.response is not None else ""
            raise LLMUnavailableError(
                f"LLM API error {e.response.status_code}: {body}"
            ) from e
        except httpx.HTTPError as e:
            self._log_failure(payload, start_time, e)
            raise LLMUnavailableError(f"Failed to send request to LLM: {e}") from e
        except Exception as e:
            # Invalid URLs and transport task-group failures are not HTTPError
            self._log_failure(payload, start_time, e)
            raise LLMUnavailableError(f"Failed to send request to LLM: {e!r}") from e

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
            usage = data.get("usage") or {}
            model = data.get("model") or self.model
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            self._log_failure(payload, start_time, e)
            raise LLMProtocolError(f"Failed to parse LLM response: {e!r}") from e
        if not isinstance(content, str):
            error = LLMProtocolError("No response content from LLM")
            self._log_failure(payload, start_time, error)
            raise error
        if not isinstance(usage, dict):
            error = LLMProtocolError(f"Malformed usage in LLM response: {usage!r}")
            self._log_failure(payload, start_time, error)
            raise error

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "LLM API call completed",
            extra={"extra_fields": {
                "provider": "openai",
                "model": model,
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
                "duration_ms": round(duration_ms, 2),
            }}
        )

        return LLMResponse(
            content=content,
            model=str(model),
            usage=usage,
            raw=data,
        )

    def _log_failure(self, payload: Dict[str, Any], start_time: float, error: Exception) -> None:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"LLM API call failed: {error}",
            extra={"extra_fields": {
                "provider": "openai",
                "model": payload.get("model"),
                "duration_ms": round(duration_ms, 2),
                "error": str(error),
            }}
        )
