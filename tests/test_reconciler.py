"""Tests for citation deduplication and marker renumbering."""

import pytest

from litreview.models.citation import SENTINEL_CITATION, Citation
from litreview.orchestrator.normalizer import normalize_citations
from litreview.orchestrator.reconciler import (
    citation_key,
    deduplicate_citations,
    extract_title,
    marker_numbers,
    renumber_markers,
    strip_dangling_markers,
)


def _cite(url=None, text="", authors="A"):
    return Citation(authors=authors, text=text, url=url)


class TestExtractTitle:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("(2020). Organoids in cancer modeling. Nature. Retrieved from x", "Organoids in cancer modeling"),
            ("Doe J (n.d.). A study of things. Journal.", "A study of things"),
            ("(2021).   Padded title  . More", "Padded title"),
            ("No parenthesis here. Title", None),
            ("", None),
            ("(2020). ", None),
        ],
    )
    def test_representative_inputs(self, text, expected):
        assert extract_title(text) == expected


class TestCitationKey:
    def test_url_is_lowercased_and_trailing_slash_dropped(self):
        assert citation_key(_cite("https://A.org/X/"), 1) == "url:https://a.org/x"

    def test_title_used_when_url_missing(self):
        assert citation_key(_cite(None, "(2020). Some Title. Pub."), 1) == "title:some title"

    def test_synthetic_key_when_nothing_matches(self):
        assert citation_key(_cite(None, "plain"), 3) == "citation:3"
        assert citation_key(_cite(None, "plain"), 4) != citation_key(_cite(None, "plain"), 3)

    def test_bad_citation_object_is_treated_as_unique(self):
        assert citation_key(object(), 7) == "citation:7"


class TestDeduplicate:
    def test_duplicate_urls_collapse_and_markers_follow(self):
        citations = normalize_citations(["https://a.org/x", "https://a.org/x"])
        result = deduplicate_citations(citations, "Adaptation strategies are critical [1][2].")
        assert len(result.citations) == 1
        assert result.content == "Adaptation strategies are critical [1][1]."

    def test_renumbering_compacts_later_indices(self):
        citations = [_cite("https://a.org/1"), _cite("https://b.org/2"), _cite("https://a.org/1"), _cite("https://c.org/3")]
        result = deduplicate_citations(citations, "x [1] y [2] z [3] w [4]")
        assert [c.url for c in result.citations] == ["https://a.org/1", "https://b.org/2", "https://c.org/3"]
        assert result.index_map == {1: 1, 2: 2, 3: 1, 4: 3}
        assert result.content == "x [1] y [2] z [1] w [3]"

    def test_swapping_indices_is_applied_in_one_pass(self):
        # [3] -> [2] must not then be rewritten again as an "old" [2].
        citations = [_cite("https://a.org"), _cite("https://a.org"), _cite("https://b.org")]
        result = deduplicate_citations(citations, "[2] and [3]")
        assert result.content == "[1] and [2]"

    def test_title_collisions_without_url(self):
        citations = [
            _cite(None, "(2020). Same paper. J."),
            _cite(None, "(2019). same paper. Other."),
            _cite(None, "untitled"),
            _cite(None, "untitled"),
        ]
        result = deduplicate_citations(citations, "[1][2][3][4]")
        assert len(result.citations) == 3
        assert result.content == "[1][1][2][3]"

    def test_duplicate_free_list_is_identity(self):
        citations = normalize_citations(["https://a.org/1", "https://b.org/2"])
        content = "Text [1] and [2] and [9]."
        result = deduplicate_citations(citations, content)
        assert result.citations == citations
        assert result.content == content

    def test_zero_or_one_citation_is_noop(self):
        assert deduplicate_citations([], "[1]").content == "[1]"
        result = deduplicate_citations([SENTINEL_CITATION], "a [1] b [2]")
        assert result.citations == [SENTINEL_CITATION]
        assert result.content == "a [1] b [2]"

    def test_idempotent(self):
        citations = normalize_citations(
            ["https://a.org/x", "https://b.org/y", "https://a.org/x", "https://b.org/y/", "https://c.org/z"]
        )
        first = deduplicate_citations(citations, "[1] [2] [3] [4] [5]")
        second = deduplicate_citations(first.citations, first.content)
        assert second.citations == first.citations
        assert second.content == first.content
        assert max(marker_numbers(first.content)) <= len(first.citations)


class TestMarkers:
    def test_unmapped_markers_are_left_untouched(self):
        assert renumber_markers("[1] [5] [x]", {1: 2}) == "[2] [5] [x]"

    def test_strip_dangling_markers(self):
        assert strip_dangling_markers("a [1][3] b [0] c [2].", 2) == "a [1] b [0] c [2]."

    def test_marker_numbers(self):
        assert marker_numbers("a [1] b [12][3]") == [1, 12, 3]
        assert marker_numbers("") == []
