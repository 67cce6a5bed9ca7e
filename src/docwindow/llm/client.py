"""LiteLLM client wrapper and API key validation.

All remote generation in docwindow routes through this module. Retries are
owned by ``docwindow.llm.resilience``, so LiteLLM's built-in retry is turned
off for calls made through ``LiteLLMGenerator`` (``num_retries=0``).
"""

from __future__ import annotations

import os
from typing import Protocol

import litellm

from docwindow.config import GenerationCfg

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "google": "GOOGLE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")

    if env_var is None:
        return  # No key required (e.g. ollama)

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 2048,
    temperature: float = 0.0,
    num_retries: int = 0,
    timeout: float | None = None,
) -> str:
    """Call litellm.completion() once and return the content string.

    Args:
        model: LiteLLM model string (provider/model format).
        messages: OpenAI-style message list.
        max_tokens: Maximum output tokens.
        temperature: Sampling temperature (0 = deterministic).
        num_retries: LiteLLM-level retries; 0 when an outer retry layer is used.
        timeout: Request timeout in seconds (None = LiteLLM default).

    Returns:
        The text content of the first choice.

    Raises:
        litellm.exceptions.APIError: On API failure.
    """
    kwargs: dict = {}
    if timeout is not None:
        kwargs["timeout"] = timeout
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
        **kwargs,
    )
    return response.choices[0].message.content or ""


class Generator(Protocol):
    """Remote text generation: prompt in, text out. May raise on failure."""

    def generate(self, prompt: str, system: str | None = None) -> str: ...


class LiteLLMGenerator:
    """``Generator`` backed by ``litellm.completion``.

    Args:
        config: Model, output budget, temperature and timeout.
    """

    def __init__(self, config: GenerationCfg | None = None) -> None:
        self.config = config or GenerationCfg()

    def generate(self, prompt: str, system: str | None = None) -> str:
        messages: list[dict] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return complete(
            self.config.model,
            messages,
            max_tokens=self.config.summary_max_tokens,
            temperature=self.config.temperature,
            timeout=self.config.timeout_seconds,
        )
