"""Remote generation: LiteLLM client and the resilience layer around it."""

from docwindow.llm.client import Generator, LiteLLMGenerator, complete, validate_api_key
from docwindow.llm.resilience import CircuitBreaker, CircuitStatus, ResilientInvoker

__all__ = [
    "Generator",
    "LiteLLMGenerator",
    "complete",
    "validate_api_key",
    "CircuitBreaker",
    "CircuitStatus",
    "ResilientInvoker",
]
