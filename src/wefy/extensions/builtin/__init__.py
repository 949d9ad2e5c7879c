"""Extensions shipped with wefy."""

from wefy.extensions.builtin.bearer import bearer_auth
from wefy.extensions.builtin.circuit_breaker import CircuitOpenError, circuit_breaker
from wefy.extensions.builtin.request_logger import request_logger

__all__ = ["bearer_auth", "circuit_breaker", "CircuitOpenError", "request_logger"]
