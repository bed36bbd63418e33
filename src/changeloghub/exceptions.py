"""Centralized exception hierarchy for changeloghub.

Errors carry a dot-path message key plus parameters; the HTTP layer turns them
into JSON responses using the recommended status code.
"""


class AppBaseError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(
        self,
        message_key: str,
        status_code: int = 500,
        retriable: bool = False,
        **params: object,
    ) -> None:
        """
        Initialize the error.

        Args:
            message_key: Dot-path identifying the error (e.g., 'packages.package.not_found')
            status_code: Recommended HTTP status code
            retriable: Whether the operation can be retried
            **params: Parameters describing the failure
        """
        super().__init__(message_key)
        self.message_key = message_key
        self.status_code = status_code
        self.retriable = retriable
        self.params = params

    def __str__(self) -> str:
        """Returns a readable version of the error for logging."""
        params_str = ", ".join(f"{k}={v}" for k, v in self.params.items())
        return f"[{self.message_key}] {params_str} (retriable: {self.retriable})"

    def to_dict(self) -> dict[str, object]:
        """Serialize the error for an API response."""
        return {
            "error": self.message_key,
            "params": {k: str(v) for k, v in self.params.items()},
            "retriable": self.retriable,
        }


class ResourceNotFoundError(AppBaseError):
    """Raised when a requested resource (package, repository, issue, etc.) is not found."""

    def __init__(self, message_key: str, **params: object) -> None:
        super().__init__(message_key, status_code=404, **params)


class ValidationError(AppBaseError):
    """Raised when input validation fails."""

    def __init__(self, message_key: str, **params: object) -> None:
        super().__init__(message_key, status_code=400, **params)


class AuthenticationError(AppBaseError):
    """Raised when a webhook or cron caller is not authorized."""

    def __init__(self, message_key: str, status_code: int = 401, **params: object) -> None:
        super().__init__(message_key, status_code=status_code, **params)


class OperationalError(AppBaseError):
    """Raised when an operational failure occurs (configuration, parsing, etc.)."""

    def __init__(self, message_key: str, retriable: bool = False, **params: object) -> None:
        super().__init__(message_key, status_code=500, retriable=retriable, **params)


class UpstreamError(AppBaseError):
    """Raised when GitHub or the package registry fails to answer a request."""

    def __init__(self, message_key: str, retriable: bool = False, **params: object) -> None:
        super().__init__(message_key, status_code=502, retriable=retriable, **params)
