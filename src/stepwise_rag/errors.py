"""Error taxonomy for the query pipeline."""

from __future__ import annotations


class StepwiseRagError(RuntimeError):
    """Base error for pipeline failures."""


class InputError(StepwiseRagError):
    """Raised when the query text is missing or empty."""

    def __init__(self, message: str = "Missing text") -> None:
        super().__init__(message)


class ToolError(StepwiseRagError):
    """Raised when a context-resolution tool fails."""

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(f"{tool_name} failed: {message}")
        self.tool_name = tool_name


class ModelError(StepwiseRagError):
    """Raised when a generative backend call fails."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"Model call {path} failed: {message}")
        self.path = path


class TraceSinkError(StepwiseRagError):
    """Raised by trace sinks. Never surfaced past tool instrumentation."""
