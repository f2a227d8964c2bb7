"""Tests for target normalization and naming helpers."""

import pytest

import hashlib

from pagediff.url_utils import (
    artifact_names,
    environment_label,
    join_url,
    normalize_target,
    sanitize_target,
)


class TestNormalizeTarget:
    """Tests for normalize_target."""

    def test_full_url_reduced_to_path(self):
        assert normalize_target("https://example.com/de_DE/overview-page") == "/de_DE/overview-page"

    def test_full_url_keeps_query(self):
        assert normalize_target("https://example.com/search?q=test") == "/search?q=test"

    def test_bare_host_becomes_root(self):
        assert normalize_target("https://example.com") == "/"

    def test_leading_slash_added(self):
        assert normalize_target("products/list") == "/products/list"

    def test_path_kept(self):
        assert normalize_target("/about") == "/about"

    def test_whitespace_stripped(self):
        assert normalize_target("  /about \n") == "/about"


class TestSanitizeTarget:
    """Tests for sanitize_target."""

    def test_non_word_runs_replaced(self):
        assert sanitize_target("/de_DE/overview-page") == "_de_DE_overview_page"

    def test_stable(self):
        assert sanitize_target("/a/b?c=1") == sanitize_target("/a/b?c=1")

    def test_only_word_characters_remain(self):
        name = sanitize_target("/päge/with spaces/&more")
        assert all(ch.isalnum() or ch == "_" for ch in name)

    def test_distinct_paths_stay_distinct(self):
        assert sanitize_target("/a") != sanitize_target("/b")


class TestArtifactNames:
    """Tests for run-wide artifact naming."""

    def test_unique_names_unchanged(self):
        assert artifact_names(["/a", "/b/c"]) == {"/a": "_a", "/b/c": "_b_c"}

    def test_colliding_names_disambiguated(self):
        names = artifact_names(["/a/b", "/a-b", "/a--b"])
        assert names["/a/b"] == "_a_b"
        digest = hashlib.sha1("/a-b".encode()).hexdigest()[:8]
        assert names["/a-b"] == f"_a_b_{digest}"
        assert len(set(names.values())) == 3

    def test_suffix_stable_across_runs(self):
        assert artifact_names(["/a/b", "/a-b"]) == artifact_names(["/a/b", "/a-b"])

    def test_hashed_name_not_reused_by_later_target(self):
        digest = hashlib.sha1("/a-b".encode()).hexdigest()[:8]
        names = artifact_names(["/a/b", "/a-b", f"/a/b/{digest}"])
        assert len(set(names.values())) == 3

    def test_repeated_target_keeps_one_name(self):
        assert artifact_names(["/a", "/a"]) == {"/a": "_a"}


class TestJoinUrl:
    """Tests for join_url."""

    def test_joins_base_and_path(self):
        assert join_url("https://example.com", "/a") == "https://example.com/a"

    def test_trailing_slash_on_base(self):
        assert join_url("https://example.com/", "/a") == "https://example.com/a"

    def test_path_without_slash(self):
        assert join_url("http://localhost:3000", "a") == "http://localhost:3000/a"


class TestEnvironmentLabel:
    """Tests for environment_label."""

    @pytest.mark.parametrize(
        "url,label",
        [
            ("http://localhost:3000", "local"),
            ("https://dev.example.com", "Dev"),
            ("https://stage.example.com", "Stage"),
            ("https://example.com", "Prod"),
            ("https://www.example.com", "Prod"),
        ],
    )
    def test_labels(self, url, label):
        assert environment_label(url) == label
