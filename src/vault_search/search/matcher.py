"""Scoring, snippet extraction and ranking.

Everything here is pure. Queries go through ``normalize``; targets (names, paths,
content) are only lowercased, so match offsets point back into the original text as
long as lowercasing keeps its length. Characters such as "\u0130" grow when lowercased
and shift the highlights that follow them.
"""

from collections.abc import Iterable, Sequence

from vault_search.search.messages import (
    FileRef,
    Highlight,
    MatchSnippet,
    MatchType,
    SearchResult,
)

ELLIPSIS = "..."

NAME_BASE_SCORE = 1000
PATH_BASE_SCORE = 700
FUZZY_BASE_SCORE = 400
CONTENT_BASE_SCORE = 300
TOKEN_ONLY_BASE_SCORE = 50
TOKEN_MATCH_SCORE = 30
MAX_POSITION_PENALTY = 200


def normalize(value: str) -> str:
    return value.strip().lower()


def tokenize(normalized_query: str) -> list[str]:
    return normalized_query.split()


def file_extension(name: str) -> str:
    """Lowercased extension without the dot, or "" when there is none."""
    stem, dot, extension = name.rpartition(".")
    if not dot or not stem:
        return ""
    return extension.lower()


def name_score(query: str, name: str) -> int | None:
    index = name.lower().find(query)
    if index < 0:
        return None
    return NAME_BASE_SCORE - min(MAX_POSITION_PENALTY, 5 * index)


def path_score(query: str, path: str) -> int | None:
    index = path.lower().find(query)
    if index < 0:
        return None
    return PATH_BASE_SCORE - min(MAX_POSITION_PENALTY, 2 * index)


def fuzzy_match(query: str, target: str) -> tuple[int, list[int]] | None:
    """
    Score ``query`` as an in-order subsequence of ``target``.

    Returns the score and the matched positions, or None if some character of the
    query cannot be found in order.
    """
    if not query:
        return None

    score = 0
    cursor = 0
    streak = 0
    positions: list[int] = []
    for char in query:
        found = target.find(char, cursor)
        if found < 0:
            return None
        if found == cursor:
            streak += 1
            score += 10 + 2 * streak
        else:
            streak = 0
            score += max(1, 6 - (found - cursor))
        positions.append(found)
        cursor = found + 1

    return score + max(0, 30 - positions[0]), positions


def fuzzy_score(query: str, target: str) -> int | None:
    match = fuzzy_match(query, target)
    return match[0] if match else None


def tokens_covered(tokens: Iterable[str], content: str) -> bool:
    return all(token in content for token in tokens)


def _ranges(positions: Sequence[int]) -> list[Highlight]:
    """Collapse sorted character positions into contiguous highlight ranges."""
    highlights: list[Highlight] = []
    for position in positions:
        if highlights and highlights[-1].end == position:
            highlights[-1] = Highlight(highlights[-1].start, position + 1)
        else:
            highlights.append(Highlight(position, position + 1))
    return highlights


def build_snippet(
    content: str, match_index: int, match_len: int, radius: int = 40
) -> MatchSnippet:
    start = max(0, match_index - radius)
    end = min(len(content), match_index + match_len + radius)
    prefix = ELLIPSIS if start > 0 else ""
    suffix = ELLIPSIS if end < len(content) else ""
    highlight_start = len(prefix) + (match_index - start)
    return MatchSnippet(
        text=prefix + content[start:end] + suffix,
        highlights=[Highlight(highlight_start, highlight_start + match_len)],
    )


def match_name(query: str, file: FileRef) -> SearchResult | None:
    """Match against the file name, then its path, then fuzzily against the name."""
    score = name_score(query, file.name)
    if score is not None:
        index = file.name.lower().find(query)
        return SearchResult(
            path=file.path,
            name=file.name,
            score=score,
            match_type=MatchType.NAME,
            matches=[MatchSnippet(file.name, [Highlight(index, index + len(query))])],
        )

    score = path_score(query, file.path)
    if score is not None:
        index = file.path.lower().find(query)
        return SearchResult(
            path=file.path,
            name=file.name,
            score=score,
            match_type=MatchType.PATH,
            matches=[MatchSnippet(file.path, [Highlight(index, index + len(query))])],
        )

    fuzzy = fuzzy_match(query, file.name.lower())
    if fuzzy is not None:
        score, positions = fuzzy
        return SearchResult(
            path=file.path,
            name=file.name,
            score=FUZZY_BASE_SCORE + score,
            match_type=MatchType.NAME,
            matches=[MatchSnippet(file.name, _ranges(positions))],
        )

    return None


def match_content(
    file: FileRef,
    content: str,
    query: str,
    tokens: Sequence[str],
    max_matches: int = 3,
    radius: int = 40,
) -> SearchResult | None:
    """
    Match the query against file content.

    The file is only eligible when every token occurs in the content. A whole-query
    occurrence gives the first snippet and the content base score, decaying with its
    position; each further token occurrence adds a snippet and a fixed bonus.
    """
    content_lower = content.lower()
    if not tokens or not tokens_covered(tokens, content_lower):
        return None

    snippets: list[MatchSnippet] = []
    seen: set[tuple[int, int]] = set()

    phrase_index = content_lower.find(query)
    if phrase_index >= 0:
        snippets.append(build_snippet(content, phrase_index, len(query), radius))
        seen.add((phrase_index, len(query)))

    token_hits = 0
    for token in tokens:
        if len(snippets) >= max_matches:
            break
        index = content_lower.find(token)
        if (index, len(token)) in seen:
            continue
        snippets.append(build_snippet(content, index, len(token), radius))
        seen.add((index, len(token)))
        token_hits += 1

    if phrase_index >= 0:
        score = CONTENT_BASE_SCORE - min(MAX_POSITION_PENALTY, phrase_index * 0.02)
        score += TOKEN_MATCH_SCORE * token_hits
    else:
        score = TOKEN_ONLY_BASE_SCORE + TOKEN_MATCH_SCORE * max(0, token_hits - 1)

    return SearchResult(
        path=file.path,
        name=file.name,
        score=score,
        match_type=MatchType.CONTENT,
        matches=snippets,
    )


def rank_results(results: Iterable[SearchResult], limit: int | None = None) -> list[SearchResult]:
    """Sort by score descending, then name and path ascending, and truncate."""
    ranked = sorted(results, key=lambda r: (-r.score, r.name, r.path))
    return ranked if limit is None else ranked[:limit]
