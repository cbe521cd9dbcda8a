"""Plain-text rendering of search results."""

from collections.abc import Callable, Sequence

import click

from vault_search.search.messages import MatchSnippet, Progress, SearchResult

Marker = Callable[[str], str]


def terminal_mark(text: str) -> str:
    return click.style(text, fg="yellow", bold=True)


def markdown_mark(text: str) -> str:
    return f"**{text}**"


def highlight_text(snippet: MatchSnippet, mark: Marker) -> str:
    # Line breaks become spaces one-for-one so highlight offsets stay valid.
    text = snippet.text.replace("\r", " ").replace("\n", " ")
    parts = []
    last = 0
    for highlight in sorted(snippet.highlights, key=lambda h: h.start):
        start = max(highlight.start, last)
        end = min(highlight.end, len(text))
        if start >= end:
            continue
        parts.append(text[last:start])
        parts.append(mark(text[start:end]))
        last = end
    parts.append(text[last:])
    return "".join(parts)


def format_result(result: SearchResult, mark: Marker) -> list[str]:
    lines = [f"{result.name}  [{result.match_type.value}]  {result.score:.0f}", f"  {result.path}"]
    for snippet in result.matches:
        lines.append(f"    {highlight_text(snippet, mark)}")
    return lines


def format_results_markdown(vault_name: str, results: Sequence[SearchResult]) -> str:
    if not results:
        return f"No matches in vault {vault_name}."
    lines = [f"# {len(results)} matches in vault {vault_name}", ""]
    for result in results:
        lines.append(f"## {result.path} ({result.match_type.value}, score {result.score:.0f})")
        for snippet in result.matches:
            lines.append(f"- {highlight_text(snippet, markdown_mark)}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


class ConsoleListener:
    """Prints controller signals: progress to stderr, result lists to stdout."""

    def __init__(self, limit: int = 20, mark: Marker = terminal_mark):
        self.limit = limit
        self.mark = mark

    def on_progress(self, progress: Progress) -> None:
        if progress.total:
            click.echo(f"Searching {progress.scanned}/{progress.total} files...", err=True)

    def on_results(self, results: Sequence[SearchResult]) -> None:
        if not results:
            click.echo("No results found")
            return
        for result in results[: self.limit]:
            click.echo("\n".join(format_result(result, self.mark)))
        click.echo(f"{len(results)} results")

    def on_done(self) -> None:
        click.echo("Search finished", err=True)
