"""Application error hierarchy.

Every failure that crosses a component boundary is an :class:`AppError`
carrying a human-readable message, an HTTP-style status code, an
``expected`` flag (``False`` for wrapped, unanticipated exceptions) and a
``context`` dict naming the originating component.  The serving layer
renders :meth:`AppError.to_dict` directly.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for all errors raised by the pipeline."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        expected: bool = True,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.expected = expected
        self.context: dict[str, Any] = dict(context or {})

    @property
    def component(self) -> str:
        return self.context.get("component", "unknown")

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": type(self).__name__,
            "message": self.message,
            "status_code": self.status_code,
            "expected": self.expected,
            "context": {k: v for k, v in self.context.items() if _is_renderable(v)},
        }

    def __repr__(self) -> str:  # noqa: D105
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code}, context={self.context!r})"


class ValidationError(AppError):
    """Missing or malformed input.  Never retried."""

    status_code = 400


class ExtractionError(AppError):
    """The loader or chunker produced no usable text."""

    status_code = 422


class EmbeddingError(AppError):
    """The embedding model failed or returned malformed output.

    ``transient`` marks upstream rate limits / outages that a caller may
    retry; permanent failures (bad input, malformed vectors) are not.
    """

    status_code = 502

    def __init__(self, message: str, *, transient: bool = False, **kwargs: Any) -> None:
        if transient:
            kwargs.setdefault("status_code", 503)
        super().__init__(message, **kwargs)
        self.transient = transient
        self.context["transient"] = transient

    @property
    def retryable(self) -> bool:
        return self.transient


class StorageError(AppError):
    """Relational or vector-index read/write failure."""

    status_code = 500


class GenerationError(AppError):
    """The text-generation call failed or returned nothing."""

    status_code = 502


class LoggingError(AppError):
    """Audit logging failed.  Always swallowed by callers."""

    status_code = 500


def wrap_error(
    exc: Exception,
    error_cls: type[AppError],
    message: str,
    *,
    component: str,
    **context: Any,
) -> AppError:
    """Return *exc* unchanged if it is already an :class:`AppError`,
    otherwise wrap it in *error_cls* flagged as unexpected."""
    if isinstance(exc, AppError):
        return exc
    return error_cls(
        f"{message}: {exc}",
        expected=False,
        context={"component": component, "cause": type(exc).__name__, **context},
    )


def _is_renderable(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool, list, dict))
