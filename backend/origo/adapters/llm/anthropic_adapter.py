"""
Anthropic (Claude) Adapter
"""

from datetime import datetime, timezone
from typing import Optional

import httpx

from origo.config import get_settings
from .base import (
    BaseLLMAdapter,
    LLMConfig,
    LLMResponse,
    LLMUsage,
    LLMProviderType,
    LLMAdapterError,
    LLMRateLimitError,
    LLMAuthenticationError,
    LLMTimeoutError,
)


class AnthropicAdapter(BaseLLMAdapter):
    """Adapter for Anthropic Messages API"""

    API_BASE = "https://api.anthropic.com/v1"
    API_VERSION = "2023-06-01"

    # Cost per 1K tokens (USD)
    PRICING = {
        "claude-haiku-4-5-20251001": {"input": 0.001, "output": 0.005},
        "claude-sonnet-4-6": {"input": 0.003, "output": 0.015},
    }
    DEFAULT_PRICING = {"input": 0.003, "output": 0.015}

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[LLMConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(api_key or get_settings().ANTHROPIC_API_KEY, config)
        self._transport = transport

    @property
    def provider(self) -> LLMProviderType:
        return LLMProviderType.ANTHROPIC

    def estimate_cost(self, input_tokens: int, output_tokens: int, model: Optional[str] = None) -> float:
        """Estimate cost based on token counts"""
        pricing = self.PRICING.get(model, self.DEFAULT_PRICING)
        input_cost = (input_tokens / 1000) * pricing["input"]
        output_cost = (output_tokens / 1000) * pricing["output"]
        return input_cost + output_cost

    async def execute(
        self,
        prompt: str,
        config: Optional[LLMConfig] = None,
        system_prompt: Optional[str] = None,
    ) -> LLMResponse:
        """Execute a single prompt with optional system instructions"""
        cfg = config or self.config
        if cfg is None:
            raise LLMAdapterError("No model configured for request", self.provider)
        if not self.api_key:
            raise LLMAuthenticationError("Anthropic API key is not configured", self.provider)

        request_time = datetime.now(timezone.utc)

        payload = {
            "model": cfg.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": cfg.max_tokens,
            "temperature": cfg.temperature,
        }

        if system_prompt:
            payload["system"] = system_prompt

        if cfg.top_p is not None:
            payload["top_p"] = cfg.top_p
        if cfg.stop_sequences:
            payload["stop_sequences"] = cfg.stop_sequences

        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": self.API_VERSION,
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=cfg.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.API_BASE}/messages",
                    json=payload,
                    headers=headers,
                )
        except httpx.TimeoutException:
            raise LLMTimeoutError(
                f"Request timed out after {cfg.timeout}s",
                self.provider,
            )
        except httpx.RequestError as e:
            raise LLMAdapterError(
                f"Request failed: {str(e)}",
                self.provider,
            )

        response_time = datetime.now(timezone.utc)

        if response.status_code == 401:
            raise LLMAuthenticationError(
                "Invalid API key",
                self.provider,
                {"status_code": response.status_code}
            )
        elif response.status_code == 429:
            raise LLMRateLimitError(
                "Rate limit exceeded",
                self.provider,
                {"status_code": response.status_code}
            )
        elif response.status_code != 200:
            raise LLMAdapterError(
                f"API error {response.status_code}: {response.text}",
                self.provider,
                {"status_code": response.status_code, "response": response.text}
            )

        try:
            data = response.json()
        except ValueError:
            raise LLMAdapterError("Malformed response body", self.provider)

        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list) or not all(isinstance(b, dict) for b in blocks):
            raise LLMAdapterError(
                "Malformed response body",
                self.provider,
                {"status_code": response.status_code},
            )

        # Concatenate text blocks
        content = ""
        for block in blocks:
            if block.get("type") == "text":
                text = block.get("text")
                if text is not None and not isinstance(text, str):
                    raise LLMAdapterError("Malformed text block", self.provider)
                content += text or ""

        usage_data = data.get("usage")
        if not isinstance(usage_data, dict):
            usage_data = {}
        input_tokens = usage_data.get("input_tokens") or 0
        output_tokens = usage_data.get("output_tokens") or 0
        usage = LLMUsage(
            prompt_tokens=input_tokens,
            completion_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
        )

        return LLMResponse(
            content=content,
            raw_response=data,
            provider=self.provider,
            model=cfg.model,
            finish_reason=data.get("stop_reason"),
            usage=usage,
            estimated_cost_usd=self.estimate_cost(
                usage.prompt_tokens, usage.completion_tokens, cfg.model
            ),
            request_time=request_time,
            response_time=response_time,
            latency_ms=self._calculate_latency(request_time, response_time),
        )
