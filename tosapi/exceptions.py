"""Provides the single error type raised throughout the TOS API."""

from typing import Any, Optional

from werkzeug.exceptions import HTTPException


class ResponseError(HTTPException):
    """
    An error that maps directly onto an HTTP response.

    Unlike the concrete :mod:`werkzeug.exceptions` classes, the status code
    is set per instance so that codes reported by remote services (e.g. the
    OAuth tokeninfo endpoint) can be passed through unchanged.
    """

    def __init__(self, code: int, description: Optional[str] = None,
                 cause: Optional[Any] = None) -> None:
        self.code = code
        self.cause = cause
        super(ResponseError, self).__init__(description=description or '')

    @property
    def kind(self) -> str:
        """Reason phrase for the status code, e.g. ``Not Found``."""
        return self.name

    @property
    def status_code(self) -> int:
        return self.code

    @property
    def message(self) -> str:
        return self.description

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.code}, {self.description!r})'

    @classmethod
    def prefixed(cls, error: Exception, prefix: str) -> 'ResponseError':
        """
        Wrap ``error`` with a stage-identifying prefix.

        The status code of ``error`` is kept if it has one; otherwise the
        wrapped error is a 500.
        """
        code = getattr(error, 'code', None)
        if not isinstance(code, int):
            code = 500
        if isinstance(error, HTTPException):
            message = error.description or ''
        else:
            message = str(error)
        if message:
            return cls(code, f'{prefix}: {message}', cause=error)
        return cls(code, prefix, cause=error)
