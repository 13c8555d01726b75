"""Unit tests for core/sentry.py."""

from unittest.mock import patch

from catalog.models import LookupRequestSpec, ResourceType
from core.exceptions import ApiError, CredentialError, CredentialFailureReason
from core.sentry import (
    add_catalog_breadcrumb,
    add_lookup_breadcrumb,
    capture_catalog_exception,
    error_tags,
    init_sentry,
)


class TestInitSentry:
    @patch("core.sentry.sentry_sdk")
    def test_missing_dsn_skips_init(self, mock_sdk, mock_settings):
        mock_settings.sentry_dsn = None
        init_sentry(mock_settings)
        mock_sdk.init.assert_not_called()
        mock_sdk.set_tag.assert_not_called()

    @patch("core.sentry.sentry_sdk")
    def test_init_from_settings(self, mock_sdk, mock_settings):
        mock_settings.sentry_dsn = "https://key@sentry.io/0"
        mock_settings.app_version = "1.2.3"
        mock_settings.log_level = "INFO"

        init_sentry(mock_settings)

        call_kwargs = mock_sdk.init.call_args[1]
        assert call_kwargs["dsn"] == "https://key@sentry.io/0"
        assert call_kwargs["environment"] == "production"
        assert call_kwargs["release"] == "1.2.3"
        mock_sdk.set_tag.assert_called_once_with("catalog.storefront", "us")

    @patch("core.sentry.sentry_sdk")
    def test_debug_is_development(self, mock_sdk, mock_settings):
        mock_settings.sentry_dsn = "https://key@sentry.io/0"
        mock_settings.log_level = "debug"

        init_sentry(mock_settings)

        assert mock_sdk.init.call_args[1]["environment"] == "development"


class TestBreadcrumbs:
    @patch("core.sentry.sentry_sdk")
    def test_adds_catalog_breadcrumb(self, mock_sdk):
        add_catalog_breadcrumb("catalog_request", {"path": "/v1/catalog/us"})
        mock_sdk.add_breadcrumb.assert_called_once_with(
            category="catalog",
            message="catalog_request",
            data={"path": "/v1/catalog/us"},
            level="info",
        )

    @patch("core.sentry.sentry_sdk")
    def test_lookup_breadcrumb_carries_type_counts(self, mock_sdk):
        spec = LookupRequestSpec(
            grouped_ids={ResourceType.ALBUMS: ("a1", "a2"), ResourceType.ARTISTS: ("r1",)}
        )

        add_lookup_breadcrumb(spec)

        call_kwargs = mock_sdk.add_breadcrumb.call_args[1]
        assert call_kwargs["message"] == "reverse_lookup"
        assert call_kwargs["data"] == {"albums": 2, "artists": 1, "include": "artists,albums"}


class TestErrorTags:
    def test_generic_error(self):
        assert error_tags(RuntimeError("boom")) == {"catalog.error": "RuntimeError"}

    def test_credential_reason(self):
        tags = error_tags(CredentialError(CredentialFailureReason.NOT_SIGNED_IN))
        assert tags["catalog.credential_reason"] == "not_signed_in"

    def test_upstream_status(self):
        assert error_tags(ApiError(503, ""))["catalog.upstream_status"] == "503"


class TestCaptureCatalogException:
    @patch("core.sentry.sentry_sdk")
    def test_attaches_request_context(self, mock_sdk):
        err = ValueError("boom")

        capture_catalog_exception(err, "reverse_lookup", selected_count=3, storefront=None)

        mock_sdk.set_context.assert_called_once_with(
            "catalog", {"operation": "reverse_lookup", "selected_count": 3}
        )
        mock_sdk.set_tag.assert_called_once_with("catalog.error", "ValueError")
        mock_sdk.capture_exception.assert_called_once_with(err)
