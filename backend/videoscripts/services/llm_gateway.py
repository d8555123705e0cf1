"""
LLM Gateway
Wraps the OpenAI chat-completion API behind one call used by every stage.

The OpenAI client is built once per process (create_llm_gateway) and
injected into each stage processor. A call sends a system and a user
message with the stage's model settings and returns the raw text plus
token usage, or raises LLMGatewayError.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from openai import OpenAI, OpenAIError

from videoscripts.config import Settings, get_settings, require

logger = logging.getLogger(__name__)

# Model pricing per 1M tokens (for cost tracking)
MODEL_PRICING = {
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
}

DEFAULT_MODEL = "gpt-4o-mini"


class LLMGatewayError(Exception):
    """Exception raised when a completion call fails or returns nothing."""
    pass


@dataclass(frozen=True)
class ModelConfig:
    """Fixed model settings for one stage."""
    model: str = DEFAULT_MODEL
    max_tokens: int = 3000
    temperature: float = 0.2
    system_message: Optional[str] = None
    expect_json: bool = True


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class LLMResponse:
    content: str
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)

    @property
    def estimated_cost_usd(self) -> float:
        return estimate_cost(self.usage.prompt_tokens, self.usage.completion_tokens, self.model)


def estimate_tokens(text: str) -> int:
    """
    Estimate token count for text.
    Rough estimate: ~4 characters per token for English text.
    """
    return len(text) // 4


def estimate_cost(input_tokens: int, output_tokens: int, model: str) -> float:
    """Calculate estimated API cost in USD."""
    pricing = MODEL_PRICING.get(model, MODEL_PRICING[DEFAULT_MODEL])
    input_cost = (input_tokens / 1_000_000) * pricing["input"]
    output_cost = (output_tokens / 1_000_000) * pricing["output"]
    return input_cost + output_cost


class LLMGateway:
    """Single entry point for chat completions."""

    def __init__(self, client: OpenAI):
        self.client = client

    def complete(self, user_prompt: str, config: ModelConfig) -> LLMResponse:
        """
        Run one chat completion.

        Args:
            user_prompt: User message with the serialized source data
            config: Stage model settings (model, tokens, temperature, system role)

        Returns:
            LLMResponse with raw content and usage

        Raises:
            LLMGatewayError: On API errors or an empty response
        """
        messages = []
        if config.system_message:
            messages.append({"role": "system", "content": config.system_message})
        messages.append({"role": "user", "content": user_prompt})

        request = {
            "model": config.model,
            "messages": messages,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
        }
        if config.expect_json:
            request["response_format"] = {"type": "json_object"}

        estimated_input_tokens = estimate_tokens((config.system_message or "") + user_prompt)
        logger.debug(f"Calling {config.model} (~{estimated_input_tokens} input tokens)")

        try:
            response = self.client.chat.completions.create(**request)
        except OpenAIError as e:
            raise LLMGatewayError(f"OpenAI API error: {e}") from e

        if not response.choices:
            raise LLMGatewayError("OpenAI returned no choices")

        content = response.choices[0].message.content
        if not content or not content.strip():
            raise LLMGatewayError("OpenAI returned an empty response")

        usage = TokenUsage()
        if response.usage is not None:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
                total_tokens=response.usage.total_tokens or 0,
            )

        result = LLMResponse(content=content, model=config.model, usage=usage)
        logger.debug(
            f"{config.model} responded: {usage.total_tokens} tokens, ${result.estimated_cost_usd:.4f}"
        )
        return result


def create_llm_gateway(settings: Optional[Settings] = None) -> LLMGateway:
    """
    Build the process-wide gateway.

    Raises:
        ConfigurationError: If no OpenAI API key is configured
    """
    settings = settings or get_settings()
    api_key = require(settings.openai_api_key, "OpenAI API key")
    return LLMGateway(OpenAI(api_key=api_key))
