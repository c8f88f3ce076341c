"""Error taxonomy shared by clients, services and the HTTP layer.

Every error carries the HTTP status it maps to, so the API layer can render
any of them with a single exception handler.
"""


class BridgeError(Exception):
    """Base class for all errors raised inside the item search bridge."""

    status_code: int = 500
    title: str = "Internal error"

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(BridgeError):
    """Bad caller input. Never retried."""

    status_code = 400
    title = "Invalid request"


class AuthError(BridgeError):
    """Missing or invalid credential."""

    status_code = 401
    title = "Unauthorized"


class ProviderError(BridgeError):
    """The embedding provider failed, timed out or returned garbage."""

    title = "Embedding provider error"


class DatabaseError(BridgeError):
    """The item store rejected a read or write."""

    title = "Database error"


class SearchError(BridgeError):
    """Provider or store failure during a search. The cause is chained."""

    title = "Search failed"
