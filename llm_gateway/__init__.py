from __future__ import annotations  # Re-export llm_gateway public API

from .llm_gateway import (
    HttpClient,
    HttpResponse,
    LlmGatewayError,
    ModelInvoker,
    ModelUnavailable,
    coerce_messages,
)

__all__ = ["HttpClient", "HttpResponse", "LlmGatewayError", "ModelInvoker", "ModelUnavailable", "coerce_messages"]
