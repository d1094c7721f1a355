"""Execution backends for config introspection."""

from .base import ExecutionContext, ExecutionTrace
from .php import PhpExecutionContext, build_wrapper

__all__ = ["ExecutionContext", "ExecutionTrace", "PhpExecutionContext", "build_wrapper"]
