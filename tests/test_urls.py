"""Tests for URL canonicalization and scope checks."""

import pytest

from linkmap.urls import InvalidURL, canonicalize, in_scope


class TestCanonicalize:
    """Test cases for canonicalize."""

    def test_removes_trailing_slash_from_root_path(self):
        assert canonicalize("https://example.com/") == "https://example.com"

    def test_root_with_and_without_slash_match(self):
        assert canonicalize("https://h.com/") == canonicalize("https://h.com")

    def test_removes_trailing_slash_from_nested_path(self):
        assert canonicalize("https://example.com/path/") == "https://example.com/path"

    def test_preserves_path_without_trailing_slash(self):
        assert canonicalize("https://example.com/path") == "https://example.com/path"

    def test_removes_fragment(self):
        assert canonicalize("https://example.com/path#section") == "https://example.com/path"

    def test_preserves_query_verbatim(self):
        assert canonicalize("https://example.com/path?b=2&a=1") == "https://example.com/path?b=2&a=1"

    def test_query_order_is_significant(self):
        """Reordered query parameters are distinct pages."""
        assert canonicalize("https://example.com/?a=1&b=2") != canonicalize("https://example.com/?b=2&a=1")

    def test_lowercases_scheme_and_host(self):
        assert canonicalize("HTTPS://Example.COM/About") == "https://example.com/About"

    def test_drops_default_port(self):
        assert canonicalize("https://example.com:443/a") == "https://example.com/a"
        assert canonicalize("http://example.com:80/a") == "http://example.com/a"

    def test_keeps_explicit_port(self):
        assert canonicalize("http://localhost:8080/a/") == "http://localhost:8080/a"

    def test_keeps_ipv6_brackets(self):
        assert canonicalize("http://[::1]:8080/a/") == "http://[::1]:8080/a"
        assert canonicalize("http://[::1]/") == "http://[::1]"

    @pytest.mark.parametrize("url", [
        "https://example.com",
        "https://example.com/a/b/",
        "https://example.com//",
        "https://example.com/a?x=1#frag",
        "http://example.com:8080/",
        "http://[::1]:8080/a/",
        "http://[::1]/",
    ])
    def test_idempotent(self, url):
        once = canonicalize(url)
        assert canonicalize(once) == once

    @pytest.mark.parametrize("url", ["not a url", "", "/relative/path", "mailto:someone@example.com", "https://example.com:99999/"])
    def test_invalid_url_raises(self, url):
        with pytest.raises(InvalidURL, match="Invalid URL"):
            canonicalize(url)

    def test_invalid_url_is_value_error(self):
        with pytest.raises(ValueError):
            canonicalize("not a url")


class TestInScope:
    """Test cases for in_scope."""

    def test_same_host(self):
        assert in_scope("https://monzo.com", "https://monzo.com/about") is True

    def test_different_subdomain(self):
        assert in_scope("https://monzo.com", "https://community.monzo.com") is False

    def test_blog_prefix_is_out_of_scope(self):
        assert in_scope("https://example.com", "https://blog.example.com/post") is False

    def test_different_domain(self):
        assert in_scope("https://monzo.com", "https://facebook.com") is False

    def test_same_subdomain_different_paths(self):
        assert in_scope("https://blog.example.com", "https://blog.example.com/post") is True

    def test_invalid_start_url(self):
        assert in_scope("not a url", "https://example.com") is False

    def test_invalid_candidate_url(self):
        assert in_scope("https://example.com", "http://[::1") is False

    def test_ipv6_host(self):
        assert in_scope("http://[::1]:8080/", "http://[::1]:8080/about") is True
        assert in_scope("http://[::1]:8080/", "http://[::1]:9090/about") is False
