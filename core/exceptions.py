"""Custom exception classes for the catalog reverse-lookup service."""

from enum import StrEnum


class CatalogServiceError(Exception):
    """Base exception for all catalog service errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class CredentialFailureReason(StrEnum):
    """Why the credential provider refused to issue a token."""

    PERMISSION_DENIED = "permission_denied"
    NOT_SIGNED_IN = "not_signed_in"
    PRIVACY_ACKNOWLEDGEMENT_REQUIRED = "privacy_acknowledgement_required"
    PROVIDER_FAILURE = "provider_failure"
    UNKNOWN = "unknown"


class CredentialError(CatalogServiceError):
    """Raised when a bearer credential cannot be obtained."""

    def __init__(
        self,
        reason: CredentialFailureReason,
        message: str | None = None,
        details: dict | None = None,
    ):
        self.reason = reason
        super().__init__(message or f"Credential request failed: {reason}", details)


class TransportError(CatalogServiceError):
    """Base class for failures talking to the catalog API."""

    pass


class NetworkError(TransportError):
    """Raised when the request never produced an HTTP response."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Network error: {cause}", {"cause": type(cause).__name__})


class ApiError(TransportError):
    """Raised when the catalog API answers with a non-200 status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"API error ({status_code}): {body}",
            {"status_code": status_code},
        )


class StorefrontUnavailableError(TransportError):
    """Raised when the storefront (region) code cannot be determined."""

    pass


class DecodeError(CatalogServiceError):
    """Raised when a catalog payload does not match the expected envelope."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Failed to decode catalog response: {cause}")


class SearchError(CatalogServiceError):
    """Raised when a keyword search is rejected."""

    pass


class EmptySearchTermError(SearchError):
    """Raised when a search is attempted with a blank term."""

    def __init__(self):
        super().__init__("Search term must not be empty")


class ServiceInitializationError(CatalogServiceError):
    """Raised when a service fails to initialize."""

    pass


class ConfigurationError(CatalogServiceError):
    """Raised when there's a configuration error."""

    pass
