"""Unit tests for the bearer-token and hostname gates."""

import pytest

from capture_api.config import Settings
from capture_api.errors import ForbiddenError, HostNotAllowedError, UnauthorizedError
from capture_api.security import (
    SecurityConfig,
    check_bearer_token,
    check_hostname,
    extract_hostname,
    is_hostname_allowed,
    normalize_whitelist,
)


class TestBearerToken:
    """Tests for check_bearer_token."""

    def test_disabled_without_expected_token(self):
        check_bearer_token(None, None)
        check_bearer_token("garbage", "")

    def test_accepts_matching_token(self):
        check_bearer_token("Bearer s3cret", "s3cret")

    @pytest.mark.parametrize("header", [None, "", "s3cret", "Basic s3cret", "bearer s3cret", "Bearer"])
    def test_missing_or_malformed_header_is_unauthorized(self, header):
        with pytest.raises(UnauthorizedError) as exc_info:
            check_bearer_token(header, "s3cret")

        assert exc_info.value.status_code == 401
        assert exc_info.value.to_dict() == {"error": "Authorization header missing or invalid format"}

    @pytest.mark.parametrize("header", ["Bearer wrong", "Bearer ", "Bearer s3cret2"])
    def test_wrong_token_is_forbidden(self, header):
        with pytest.raises(ForbiddenError) as exc_info:
            check_bearer_token(header, "s3cret")

        assert exc_info.value.status_code == 403
        assert exc_info.value.to_dict() == {"error": "Invalid token"}


class TestHostnameAllowList:
    """Tests for is_hostname_allowed and check_hostname."""

    def test_empty_whitelist_allows_everything(self):
        assert is_hostname_allowed("https://anything.test/path", ())

    def test_exact_match(self):
        assert is_hostname_allowed("https://example.com/", ("example.com",))

    def test_subdomain_match(self):
        assert is_hostname_allowed("https://sub.example.com", ("example.com",))
        assert is_hostname_allowed("https://a.b.example.com:8443/x", ("example.com",))

    def test_substring_is_not_a_subdomain(self):
        assert not is_hostname_allowed("https://evilexample.com", ("example.com",))
        assert not is_hostname_allowed("https://example.com.evil.test", ("example.com",))

    def test_any_entry_may_match(self):
        assert is_hostname_allowed("https://docs.other.org", ("example.com", "other.org"))

    def test_hostname_comparison_ignores_case(self):
        assert is_hostname_allowed("https://WWW.Example.COM", ("example.com",))

    def test_unparseable_url_is_rejected(self):
        assert not is_hostname_allowed("not a url", ())
        assert not is_hostname_allowed("http://[::1", ("example.com",))

    def test_backslash_authority_uses_browser_host(self):
        url = "https://evil.test\\@example.com/"

        assert extract_hostname(url) == "evil.test"
        assert not is_hostname_allowed(url, ("example.com",))

    def test_userinfo_is_not_the_host(self):
        assert extract_hostname("https://example.com@evil.test/") == "evil.test"
        assert not is_hostname_allowed("https://example.com@evil.test/", ("example.com",))

    def test_check_hostname_names_allowed_set(self):
        with pytest.raises(HostNotAllowedError) as exc_info:
            check_hostname("https://evilexample.com", ("example.com", "other.org"))

        assert exc_info.value.status_code == 403
        assert exc_info.value.hostname == "evilexample.com"
        assert exc_info.value.to_dict() == {"error": "Hostname not allowed. Must be one of: example.com, other.org"}


class TestSecurityConfig:
    """Tests for SecurityConfig construction."""

    def test_normalize_whitelist(self):
        assert normalize_whitelist([" Example.com ", "", "  ", "other.org"]) == ("example.com", "other.org")

    def test_from_settings(self, monkeypatch):
        monkeypatch.setenv("SCREENSHOT_AUTH_TOKEN", "tok")
        monkeypatch.setenv("SCREENSHOT_HOST_WHITELIST", "example.com, Docs.Other.org,")

        config = SecurityConfig.from_settings(Settings())

        assert config == SecurityConfig(auth_token="tok", host_whitelist=("example.com", "docs.other.org"))

    def test_from_settings_defaults_to_open(self, monkeypatch):
        monkeypatch.delenv("SCREENSHOT_AUTH_TOKEN", raising=False)
        monkeypatch.delenv("SCREENSHOT_HOST_WHITELIST", raising=False)

        assert SecurityConfig.from_settings(Settings()) == SecurityConfig()
