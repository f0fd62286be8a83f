"""Error taxonomy shared by the gateway, aggregator and session layers."""

from dataclasses import dataclass


class TodolineError(Exception):
    """Base class for failures reported to the user."""

    exit_code = 1


class AuthError(TodolineError):
    """Raised when the API token is missing or rejected."""

    exit_code = 3


class NetworkError(TodolineError):
    """Raised when transient failures outlast the retry budget."""

    exit_code = 4

    def __init__(self, message: str, attempts: int = 0, cause: Exception | None = None):
        super().__init__(message)
        self.attempts = attempts
        self.cause = cause


class RemoteRequestError(TodolineError):
    """Raised for non-transient 4xx responses. Carries the remote message verbatim."""

    exit_code = 5

    def __init__(self, status: int, message: str):
        super().__init__(f"Bad response from API: {status} - {message}")
        self.status = status
        self.message = message


class AggregationError(TodolineError):
    """Raised when a required resource collection could not be fetched."""

    exit_code = 6

    def __init__(self, resource: str, cause: Exception):
        super().__init__(f"Unable to fetch {resource}: {cause}")
        self.resource = resource
        self.cause = cause


class InvalidInputError(TodolineError):
    """Raised for user input that fails local validation."""

    exit_code = 7


@dataclass
class ConsistencyWarning:
    """Non-fatal diagnostic produced alongside a successful result."""

    kind: str
    message: str

    def __str__(self) -> str:
        return self.message
