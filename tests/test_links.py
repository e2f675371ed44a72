"""Tests for link resolution."""

from topic_help.core.links import canonicalize, is_absolute_link, resolve_link


class TestAbsoluteLinks:
    def test_http_unchanged(self):
        assert resolve_link("http://x/a.html", "file:/docs/", "doc.html") == "http://x/a.html"

    def test_file_and_ftp_unchanged(self):
        assert resolve_link("file:/tmp/a", "http://x/") == "file:/tmp/a"
        assert resolve_link("ftp://host/f", "http://x/") == "ftp://host/f"

    def test_unchanged_in_expand_mode(self):
        assert resolve_link("http://x/../a", "http://y/", expand=True) == "http://x/../a"

    def test_is_absolute_case_insensitive(self):
        assert is_absolute_link("HTTP://X/")
        assert not is_absolute_link("index.html")


class TestNonExpanding:
    def test_fragment_uses_document_name(self):
        assert resolve_link("#sec1", "http://x/", "doc.html") == "http://x/doc.html#sec1"

    def test_fragment_with_full_document_prefix(self):
        assert resolve_link("#sec1", "http://x/doc.html") == "http://x/doc.html#sec1"

    def test_relative_link(self):
        assert resolve_link("other.html", "http://x/", "doc.html") == "http://x/other.html"

    def test_strips_dot_slash(self):
        assert resolve_link("./other.html", "http://x/") == "http://x/other.html"

    def test_dotdot_left_alone(self):
        assert resolve_link("../up.html", "http://x/a/") == "http://x/a/../up.html"

    def test_empty_prefix(self):
        assert resolve_link("a.html", "") == "a.html"


class TestExpanding:
    def test_dotdot_collapsed(self):
        assert resolve_link("../up.html", "http://x/a/", expand=True) == "http://x/up.html"

    def test_scheme_reattached(self):
        assert resolve_link("./b/../c.html", "file:/docs/", expand=True) == "file:/docs/c.html"

    def test_fragment_canonicalizes_document_path(self):
        result = resolve_link("#top", "file:/docs/sub/../", "doc.html", expand=True)
        assert result == "file:/docs/doc.html#top"

    def test_prefix_without_scheme(self):
        assert resolve_link("../a.html", "/docs/sub/", expand=True) == "/docs/a.html"

    def test_windows_drive_prefix(self):
        assert resolve_link("../a.html", "C:/docs/sub/", expand=True) == "C:/docs/a.html"
        assert resolve_link("../../../a.html", "C:/docs/", expand=True) == "C:/a.html"


class TestCanonicalize:
    def test_keeps_trailing_slash(self):
        assert canonicalize("/a/b/../") == "/a/"

    def test_empty(self):
        assert canonicalize("") == ""
