"""Base error class for honorer.

Every honorer error carries a stable ``error_code``, an :class:`ErrorContext`
describing where it happened (the module being registered, the raising
frame, extra details) and suggestions for fixing it. Errors log themselves
through loguru when they are created, so a failure is recorded even when
a caller catches and wraps it.
"""

from __future__ import annotations

import re
import traceback
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Type, TypeVar

from loguru import logger
from pydantic import BaseModel, Field
from rich.markup import escape

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class ErrorContext(BaseModel):
    """Where an error happened and what might fix it."""

    timestamp: datetime = Field(default_factory=datetime.now)
    module_name: Optional[str] = None
    location: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    suggestions: List[str] = Field(default_factory=list)
    causes: List[Dict[str, str]] = Field(default_factory=list)

    @classmethod
    def capture(cls, exc: Optional[BaseException] = None, **kwargs: Any) -> "ErrorContext":
        """Build a context located at the innermost frame of ``exc``'s traceback."""
        location = None
        if exc is not None and exc.__traceback__ is not None:
            frame = traceback.extract_tb(exc.__traceback__)[-1]
            location = f"{frame.filename}:{frame.lineno} in {frame.name}"
        return cls(location=location, **kwargs)

    def add_detail(self, key: str, value: Any) -> None:
        self.details[key] = value

    def add_suggestion(self, suggestion: str) -> None:
        self.suggestions.append(suggestion)

    def add_cause(self, error: BaseException) -> None:
        """Record an underlying exception by type and message."""
        self.causes.append({
            "type": type(error).__name__,
            "message": str(error),
        })


def default_error_code(error_class: type) -> str:
    """``ProviderNotFoundError`` -> ``PROVIDER_NOT_FOUND``."""
    code = _CAMEL_BOUNDARY.sub("_", error_class.__name__).upper()
    return code[: -len("_ERROR")] if code.endswith("_ERROR") else code


E = TypeVar("E", bound="HonorerError")


class HonorerError(Exception):
    """Base exception of honorer.

    Subclasses set ``code`` and ``recoverable`` as class attributes;
    both can be overridden per instance. Non-recoverable errors are
    logged as critical, the others as errors.
    """

    code: ClassVar[Optional[str]] = None
    recoverable: bool = True

    def __init__(
        self,
        message: str,
        *,
        context: Optional[ErrorContext] = None,
        cause: Optional[BaseException] = None,
        error_code: Optional[str] = None,
        recoverable: Optional[bool] = None,
    ):
        """Initialize the error and log it.

        Args:
            message: Human-readable error message
            context: Context to attach (captured from ``cause`` when omitted)
            cause: Underlying exception
            error_code: Overrides the class code
            recoverable: Overrides the class default
        """
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.error_code = error_code or self.code or default_error_code(type(self))
        if recoverable is not None:
            self.recoverable = recoverable

        self.context = context or ErrorContext.capture(cause)
        if cause is not None:
            self.context.add_cause(cause)

        self._log()

    def _log(self) -> None:
        bound = logger.bind(
            error_code=self.error_code,
            module_name=self.context.module_name,
            details=self.context.details,
        )
        bound.log("ERROR" if self.recoverable else "CRITICAL", self.message)

    @classmethod
    def from_exception(cls: Type[E], exc: BaseException, message: Optional[str] = None, **kwargs: Any) -> E:
        """Wrap another exception, keeping its message unless one is given."""
        return cls(message or str(exc), cause=exc, **kwargs)

    def with_context(self: E, **details: Any) -> E:
        """Attach details (config path, token, ...) to the error."""
        for key, value in details.items():
            self.context.add_detail(key, value)
        return self

    def with_suggestion(self: E, suggestion: str) -> E:
        self.context.add_suggestion(suggestion)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe representation."""
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "recoverable": self.recoverable,
            "context": self.context.model_dump(mode="json"),
            "cause": str(self.cause) if self.cause is not None else None,
        }

    def format_for_cli(self, verbose: bool = False) -> str:
        """Rich markup for the command line: message, code, suggestions."""
        lines = [escape(self.message), f"[dim]Code: {self.error_code}[/dim]"]

        if self.context.suggestions:
            lines.append("")
            lines.append("[yellow]Suggestions:[/yellow]")
            lines.extend(f"  - {escape(s)}" for s in self.context.suggestions)

        if verbose and self.context.details:
            lines.append("")
            lines.append("[dim]Details:[/dim]")
            lines.extend(f"  {key}: {escape(str(value))}" for key, value in self.context.details.items())

        return "\n".join(lines)
