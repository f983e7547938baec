"""Unit tests for the URL safety guard."""
import pytest

from processor.url_guard import is_safe_url


class TestIsSafeUrl:
    """Test cases for is_safe_url."""

    @pytest.mark.parametrize('url', [
        'http://example.com',
        'https://example.com',
        'https://example.com/path?query=value',
        'HTTPS://EXAMPLE.COM',
        '/path/to/page',
        '/relative/path',
        'event.html?id=3',
        '//cdn.example.com/flyer.pdf',
    ])
    def test_safe_urls(self, url):
        """Test that http, https and relative links are allowed."""
        assert is_safe_url(url) is True

    @pytest.mark.parametrize('url', [
        'javascript:alert(1)',
        'JavaScript:alert(1)',
        '  javascript:alert(1)',
        'java\tscript:alert(1)',
        'data:text/html,<script>alert(1)</script>',
        'file:///etc/passwd',
        'vbscript:msgbox(1)',
        'ftp://example.com',
        'mailto:racer@example.com',
    ])
    def test_unsafe_schemes(self, url):
        """Test that every other scheme is rejected."""
        assert is_safe_url(url) is False

    @pytest.mark.parametrize('url', [None, '', '   ', 42, ['https://example.com']])
    def test_missing_or_non_string(self, url):
        """Test that missing and non-string values are rejected."""
        assert is_safe_url(url) is False

    def test_unparsable_url(self):
        """Test that malformed URLs are rejected without raising."""
        assert is_safe_url('http://[::1') is False

    @pytest.mark.parametrize('url', [
        'https://example.com:notaport',
        'https://example.com:99999',
        'http://exa mple.com',
        'https://exa<mple.com',
        'https://exa"mple.com',
        'http:',
    ])
    def test_malformed_authority(self, url):
        """Test that http(s) URLs with a bad host or port are rejected."""
        assert is_safe_url(url) is False

    def test_explicit_port_allowed(self):
        """Test that a valid port does not affect the verdict."""
        assert is_safe_url('https://example.com:8443/events') is True
