"""Tests for scoring, snippets and ranking."""

import pytest

from vault_search.search.matcher import (
    ELLIPSIS,
    build_snippet,
    file_extension,
    fuzzy_match,
    fuzzy_score,
    match_content,
    match_name,
    name_score,
    normalize,
    path_score,
    rank_results,
    tokenize,
    tokens_covered,
)
from vault_search.search.messages import FileRef, Highlight, MatchType, SearchResult


def _result(name: str, score: float, path: str | None = None) -> SearchResult:
    return SearchResult(path=path or name, name=name, score=score, match_type=MatchType.NAME)


def _is_subsequence(query: str, target: str) -> bool:
    it = iter(target)
    return all(char in it for char in query)


class TestNormalize:
    def test_trims_and_lowercases(self):
        assert normalize("  Milk EGGS \n") == "milk eggs"

    def test_tokenize_splits_on_any_whitespace(self):
        assert tokenize("milk  eggs\tbread") == ["milk", "eggs", "bread"]

    def test_file_extension(self):
        assert file_extension("Photo.JPG") == "jpg"
        assert file_extension("archive.tar.gz") == "gz"
        assert file_extension("README") == ""
        assert file_extension(".gitignore") == ""


class TestContainmentScores:
    def test_name_at_start(self):
        assert name_score("todo", "todo.md") == 1000

    def test_name_penalty_grows_with_position(self):
        assert name_score("todo", "my-todo.md") == 1000 - 5 * 3

    def test_name_penalty_is_capped(self):
        assert name_score("x", "a" * 100 + "x") == 800

    def test_name_is_case_insensitive(self):
        assert name_score("todo", "TODO.md") == 1000

    def test_path_score(self):
        assert path_score("journal", "work/journal/day.md") == 700 - 2 * 5

    def test_path_penalty_is_capped(self):
        assert path_score("x", "a/" * 200 + "x") == 500

    def test_no_containment(self):
        assert name_score("milk", "notes.md") is None
        assert path_score("milk", "notes.md") is None


class TestFuzzy:
    def test_not_a_subsequence(self):
        assert fuzzy_score("zq", "notes.md") is None
        assert fuzzy_score("ba", "ab") is None

    def test_empty_query(self):
        assert fuzzy_score("", "notes.md") is None

    def test_contiguous_prefix(self):
        # streaks 1, 2, 3: 12 + 14 + 16, plus a start bonus of 30
        assert fuzzy_score("abc", "abcdef") == 72

    def test_gaps(self):
        # a: contiguous (12); c: gap 1 -> 5; e: gap 1 -> 5; start bonus 30
        assert fuzzy_score("ace", "abcde") == 52

    def test_large_gap_scores_at_least_one(self):
        assert fuzzy_score("az", "a" + "-" * 20 + "z") == 12 + 1 + 30

    def test_start_bonus_uses_first_match(self):
        # gap of 2 scores 4, start bonus 30 - 2
        assert fuzzy_score("a", "xxa") == 4 + 28

    def test_positions(self):
        assert fuzzy_match("nts", "notes.md") == (fuzzy_score("nts", "notes.md"), [0, 2, 4])

    def test_contiguous_beats_scattered(self):
        assert fuzzy_score("note", "notes.md") > fuzzy_score("note", "n-o-t-e.md")

    @pytest.mark.parametrize(
        "query,target",
        [("nts", "notes.md"), ("xyz", "notes.md"), ("md", "notes.md"), ("sn", "notes.md")],
    )
    def test_none_iff_not_subsequence(self, query, target):
        score = fuzzy_score(query, target)
        if _is_subsequence(query, target):
            assert score is not None and score > 0
        else:
            assert score is None

    def test_longer_contiguous_run_never_scores_lower(self):
        scattered = fuzzy_score("abcd", "a-b-c-d")
        partial = fuzzy_score("abcd", "ab-c-d")
        contiguous = fuzzy_score("abcd", "abcd")
        assert scattered <= partial <= contiguous


class TestSnippet:
    def test_short_content_is_not_clipped(self):
        snippet = build_snippet("buy milk and eggs", 4, 4)
        assert snippet.text == "buy milk and eggs"
        assert snippet.highlights == [Highlight(4, 8)]

    def test_clipped_on_both_sides(self):
        content = "a" * 100 + "milk" + "b" * 100
        snippet = build_snippet(content, 100, 4, radius=10)
        assert snippet.text == ELLIPSIS + "a" * 10 + "milk" + "b" * 10 + ELLIPSIS
        highlight = snippet.highlights[0]
        assert snippet.text[highlight.start : highlight.end] == "milk"

    def test_clipped_at_end_only(self):
        content = "milk" + "b" * 100
        snippet = build_snippet(content, 0, 4, radius=5)
        assert snippet.text == "milkbbbbb" + ELLIPSIS
        assert snippet.highlights == [Highlight(0, 4)]


class TestMatchName:
    def test_name_match(self):
        result = match_name("todo", FileRef("work/todo.md", "todo.md"))
        assert result.match_type is MatchType.NAME
        assert result.score == 1000
        assert result.matches[0].text == "todo.md"
        assert result.matches[0].highlights == [Highlight(0, 4)]

    def test_path_match(self):
        result = match_name("work", FileRef("work/todo.md", "todo.md"))
        assert result.match_type is MatchType.PATH
        assert result.score == 700
        assert result.matches[0].text == "work/todo.md"

    def test_fuzzy_name_match(self):
        result = match_name("tdo", FileRef("todo.md", "todo.md"))
        assert result.match_type is MatchType.NAME
        assert result.score == 400 + fuzzy_score("tdo", "todo.md")
        assert result.matches[0].highlights == [Highlight(0, 1), Highlight(2, 4)]

    def test_no_match(self):
        assert match_name("milk", FileRef("notes.md", "notes.md")) is None


class TestMatchContent:
    FILE = FileRef("notes.md", "notes.md")

    def test_requires_every_token(self):
        assert match_content(self.FILE, "buy milk", "milk eggs", ["milk", "eggs"]) is None

    def test_tokens_covered(self):
        assert tokens_covered(["milk", "eggs"], "buy milk and eggs")
        assert not tokens_covered(["milk", "bread"], "buy milk and eggs")

    def test_whole_query_match(self):
        result = match_content(self.FILE, "buy Milk and eggs", "milk", ["milk"])
        assert result.match_type is MatchType.CONTENT
        assert result.score == 300 - 4 * 0.02
        assert len(result.matches) == 1
        snippet = result.matches[0]
        highlight = snippet.highlights[0]
        assert snippet.text[highlight.start : highlight.end] == "Milk"

    def test_token_only_match(self):
        result = match_content(self.FILE, "buy milk and eggs", "milk eggs", ["milk", "eggs"])
        assert result.score == 50 + 30
        assert [s.text[s.highlights[0].start : s.highlights[0].end] for s in result.matches] == [
            "milk",
            "eggs",
        ]

    def test_whole_query_and_tokens(self):
        result = match_content(self.FILE, "milk eggs", "milk eggs", ["milk", "eggs"])
        assert len(result.matches) == 3
        assert result.score == 300 + 30 * 2

    def test_snippets_are_capped(self):
        content = "a b c d e"
        result = match_content(self.FILE, content, "a b c d", ["a", "b", "c", "d"], max_matches=3)
        assert len(result.matches) == 3

    def test_content_decay_is_capped(self):
        content = "x" * 100_000 + "milk"
        result = match_content(self.FILE, content, "milk", ["milk"])
        assert result.score == 100


class TestRanking:
    def test_score_descending_then_name(self):
        ranked = rank_results([_result("b.md", 10), _result("a.md", 10), _result("c.md", 20)])
        assert [r.name for r in ranked] == ["c.md", "a.md", "b.md"]

    def test_path_breaks_remaining_ties(self):
        ranked = rank_results([_result("a.md", 1, "z/a.md"), _result("a.md", 1, "b/a.md")])
        assert [r.path for r in ranked] == ["b/a.md", "z/a.md"]

    def test_truncates(self):
        ranked = rank_results([_result(f"{i}.md", i) for i in range(10)], limit=3)
        assert [r.score for r in ranked] == [9, 8, 7]

    def test_buckets(self):
        files = [
            FileRef("todo.md", "todo.md"),
            FileRef("todo/list.md", "list.md"),
            FileRef("t-o-d-o.md", "t-o-d-o.md"),
        ]
        hits = [match_name("todo", f) for f in files]
        content_hit = match_content(FileRef("x.md", "x.md"), "todo", "todo", ["todo"])
        ranked = rank_results(hits + [content_hit])
        assert [r.path for r in ranked] == ["todo.md", "todo/list.md", "t-o-d-o.md", "x.md"]
