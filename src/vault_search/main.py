import asyncio
import dataclasses
import functools
import json
from collections.abc import Sequence
from pathlib import Path

import click

from vault_search.render import ConsoleListener, format_result, terminal_mark
from vault_search.search.config import SearchConfig, get_search_config


def search_options(func):
    """Tuning options shared by every command; unset options fall back to the environment."""

    @click.option("--max-results", type=click.IntRange(min=1), help="Maximum results kept per search.")
    @click.option("--concurrency", type=click.IntRange(min=1), help="Files scanned in parallel.")
    @click.option(
        "--debounce-ms", type=click.IntRange(min=0), help="Delay before a query edit starts a search."
    )
    @click.option(
        "--min-content-chars",
        "min_content_query_len",
        type=click.IntRange(min=0),
        help="Shortest query that also searches file content.",
    )
    @click.option(
        "--context-radius", type=click.IntRange(min=0), help="Characters shown around content matches."
    )
    @functools.wraps(func)
    def wrapper(
        *args,
        max_results: int | None,
        concurrency: int | None,
        debounce_ms: int | None,
        min_content_query_len: int | None,
        context_radius: int | None,
        **kwargs,
    ):
        try:
            config = get_search_config(
                max_results=max_results,
                concurrency=concurrency,
                debounce_ms=debounce_ms,
                min_content_query_len=min_content_query_len,
                context_radius=context_radius,
            )
        except ValueError as e:
            raise click.UsageError(str(e)) from e
        return func(*args, config=config, **kwargs)

    return wrapper


vault_option = click.option(
    "--vault",
    "-v",
    "vault_path",
    help="Vault to search.",
    required=True,
    type=click.Path(exists=True, dir_okay=True, file_okay=False, path_type=Path),
)


@click.group("vault-search")
def main():
    """
    CLI for Vault Search.
    """
    pass


@main.command("search")
@vault_option
@click.argument("query")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=20, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
@search_options
def search_cmd(vault_path: Path, query: str, limit: int, as_json: bool, config: SearchConfig):
    """
    Search a vault once and print the ranked results.
    """
    from vault_search.search.searcher import Searcher
    from vault_search.search.vault import Vault

    searcher = Searcher(Vault(vault_path.name, vault_path), config)
    results = asyncio.run(searcher.search(query, limit=limit))

    if as_json:
        click.echo(json.dumps([dataclasses.asdict(result) for result in results], indent=2))
        return

    if not results:
        click.echo("No results found")
        return
    for result in results:
        click.echo("\n".join(format_result(result, terminal_mark)))


@main.command("live")
@vault_option
@click.option("--watch", is_flag=True, help="Re-run the query when the vault changes.")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=20, show_default=True)
@search_options
def live_cmd(vault_path: Path, watch: bool, limit: int, config: SearchConfig):
    """
    Read queries from stdin, one edit per line, and search as they arrive.
    """
    from vault_search.search.vault import Vault

    asyncio.run(_live(Vault(vault_path.name, vault_path), config, watch, limit))


async def _live(vault, config: SearchConfig, watch: bool, limit: int):
    from vault_search.search.controller import QueryController
    from vault_search.search.watcher import DirectoryWatcher

    controller = QueryController(vault.files, vault.cache, ConsoleListener(limit=limit), config)
    watcher = None
    if watch:

        def on_change():
            vault.tree_changed()
            controller.refresh()

        watcher = DirectoryWatcher(vault.root, on_change, loop=asyncio.get_running_loop())
        watcher.start()

    stdin = click.get_text_stream("stdin")
    try:
        while True:
            line = await asyncio.to_thread(stdin.readline)
            if not line:
                break
            controller.set_query(line)
        await controller.wait()
    finally:
        if watcher is not None:
            watcher.stop()
        await controller.aclose()


@main.command("mcp")
@click.option(
    "--vault",
    "-v",
    "vault_paths",
    multiple=True,
    help="Vault to search.",
    required=True,
    type=click.Path(exists=True, dir_okay=True, file_okay=False, path_type=Path),
)
@click.option("--watch", is_flag=True, help="Watch for changes.")
@search_options
def mcp_cmd(vault_paths: Sequence[Path], watch: bool, config: SearchConfig):
    """
    Run the Vault Search MCP server.
    """
    from vault_search.mcp_server import run_server

    run_server(
        {vault_path.name: vault_path for vault_path in vault_paths},
        watch_directories=watch,
        config=config,
    )


if __name__ == "__main__":
    main()
