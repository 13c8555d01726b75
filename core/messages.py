"""Human-readable messages for catalog service errors."""

from core.exceptions import (
    ApiError,
    CatalogServiceError,
    CredentialError,
    CredentialFailureReason,
    DecodeError,
    EmptySearchTermError,
    NetworkError,
    SearchError,
    StorefrontUnavailableError,
    TransportError,
)

CREDENTIAL_MESSAGES: dict[CredentialFailureReason, str] = {
    CredentialFailureReason.PERMISSION_DENIED: (
        "Access to the music catalog was denied. Grant permission in settings."
    ),
    CredentialFailureReason.NOT_SIGNED_IN: (
        "You are not signed in. Sign in to your account in settings."
    ),
    CredentialFailureReason.PRIVACY_ACKNOWLEDGEMENT_REQUIRED: (
        "You need to accept the latest privacy policy in the music app."
    ),
    CredentialFailureReason.PROVIDER_FAILURE: (
        "Failed to obtain a developer token. Check the app ID and catalog service setup."
    ),
    CredentialFailureReason.UNKNOWN: "An unknown error occurred while requesting a token.",
}


def credential_message(reason: CredentialFailureReason) -> str:
    """Remediation text for a credential failure reason."""
    return CREDENTIAL_MESSAGES[reason]


def user_message(error: Exception) -> str:
    """Translate an error into a message suitable for end users.

    Args:
        error: Any exception raised by the catalog client

    Returns:
        A human-readable description of the failure
    """
    if isinstance(error, CredentialError):
        return credential_message(error.reason)
    if isinstance(error, StorefrontUnavailableError):
        return "Could not determine your storefront region."
    if isinstance(error, NetworkError):
        return f"Network error: {error.cause}"
    if isinstance(error, ApiError):
        body = error.body or "unknown error"
        return f"API error ({error.status_code}): {body}"
    if isinstance(error, TransportError):
        return f"Catalog request failed: {error.message}"
    if isinstance(error, DecodeError):
        return f"Could not read the catalog response: {error.cause}"
    if isinstance(error, EmptySearchTermError):
        return "Enter a search term."
    if isinstance(error, SearchError):
        return f"Search failed: {error.message}"
    if isinstance(error, CatalogServiceError):
        return error.message
    return "An unexpected error occurred."
