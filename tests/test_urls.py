"""Tests for URL normalization, scoping and cleanliness helpers."""

from geo_analyzer.utils.urls import (
    is_asset_url,
    is_clean_url,
    is_http_url,
    normalize_url,
    origin_of,
    registrable_domain,
    resolve_href,
    same_site,
)


class TestOrigin:
    def test_strips_path_and_query(self):
        assert origin_of("https://example.com/a/b?x=1#f") == "https://example.com"

    def test_keeps_port(self):
        assert origin_of("http://localhost:8080/x") == "http://localhost:8080"


class TestRegistrableDomain:
    def test_last_two_labels(self):
        assert registrable_domain("https://www.shop.example.com/x") == "example.com"

    def test_accepts_bare_host(self):
        assert registrable_domain("blog.example.com") == "example.com"

    def test_multi_label_suffix_is_approximated(self):
        # Known approximation: every *.co.uk host collapses to "co.uk"
        assert registrable_domain("https://shop.example.co.uk/") == "co.uk"

    def test_ip_unchanged(self):
        assert registrable_domain("http://192.168.0.1/") == "192.168.0.1"

    def test_same_site_across_subdomains(self):
        assert same_site("https://blog.example.com/a", "https://www.example.com/")
        assert not same_site("https://example.org/", "https://example.com/")


class TestNormalize:
    def test_lowercases_scheme_and_host(self):
        assert normalize_url("HTTPS://Example.COM/Path") == "https://example.com/Path"

    def test_empty_path_becomes_slash(self):
        assert normalize_url("https://example.com") == "https://example.com/"

    def test_strips_query_and_fragment_by_default(self):
        assert normalize_url("https://example.com/a?x=1#top") == "https://example.com/a"

    def test_keeps_query_and_fragment_on_request(self):
        url = "https://example.com/a?x=1#top"
        assert normalize_url(url, keep_query=True) == "https://example.com/a?x=1"
        assert normalize_url(url, keep_query=True, keep_hash=True) == url


class TestFilters:
    def test_http_schemes_only(self):
        assert is_http_url("https://example.com/")
        assert is_http_url("http://example.com/")
        assert not is_http_url("mailto:info@example.com")
        assert not is_http_url("javascript:void(0)")

    def test_asset_extensions(self):
        assert is_asset_url("https://example.com/img/logo.PNG")
        assert is_asset_url("https://example.com/files/preise.pdf")
        assert is_asset_url("https://example.com/sitemap.xml")
        assert not is_asset_url("https://example.com/leistungen/")

    def test_resolve_href(self):
        assert resolve_href("/kontakt", "https://example.com/a/b") == "https://example.com/kontakt"
        assert resolve_href("c", "https://example.com/a/b") == "https://example.com/a/c"
        assert resolve_href("   ", "https://example.com/") is None


class TestCleanUrl:
    def test_clean(self):
        assert is_clean_url("https://example.com/leistungen/seo?x=1")

    def test_uppercase_path(self):
        assert not is_clean_url("https://example.com/Leistungen")

    def test_long_path(self):
        assert not is_clean_url("https://example.com/" + "a" * 130)

    def test_too_many_params(self):
        assert not is_clean_url("https://example.com/?a=1&b=2&c=3&d=4&e=5")
