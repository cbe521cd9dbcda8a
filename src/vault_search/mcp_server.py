import asyncio
from pathlib import Path
from urllib.parse import quote, unquote

import mcp.server.stdio
import mcp.types as types
import pydantic
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from vault_search import __version__
from vault_search.logger import logging
from vault_search.render import format_results_markdown
from vault_search.search.config import SearchConfig
from vault_search.search.searcher import Searcher
from vault_search.search.vault import Vault
from vault_search.search.watcher import DirectoryWatcher

logger = logging.getLogger(__name__)

RESOURCE_SCHEME = "vault"
RECENT_FILES_PER_VAULT = 20


class SearchNotesArguments(pydantic.BaseModel):
    query: str = pydantic.Field(min_length=1, description="Text to look for in names, paths and content")
    vault: str | None = pydantic.Field(default=None, description="Vault to search; all vaults if omitted")
    limit: int = pydantic.Field(default=20, ge=1, le=200, description="Maximum results per vault")


def resource_uri(vault_name: str, path: str) -> str:
    return f"{RESOURCE_SCHEME}://{quote(vault_name, safe='')}/{quote(path)}"


async def search_notes(
    searchers: dict[str, Searcher], name: str, arguments: dict | None
) -> list[types.TextContent]:
    """Run the ``search-notes`` tool: one markdown block per searched vault."""
    if name != "search-notes":
        raise ValueError(f"Unknown tool: {name}")

    if not arguments:
        raise ValueError("Missing arguments")

    try:
        args = SearchNotesArguments.model_validate(arguments)
    except pydantic.ValidationError as e:
        raise ValueError(f"Invalid arguments: {e}") from e

    if args.vault is not None and args.vault not in searchers:
        raise ValueError(f"Unknown vault: {args.vault}")

    names = [args.vault] if args.vault else list(searchers)
    contents = []
    for vault_name in names:
        results = await searchers[vault_name].search(args.query, limit=args.limit)
        contents.append(
            types.TextContent(type="text", text=format_results_markdown(vault_name, results))
        )
    return contents


def list_recent_notes(vaults: dict[str, Vault]) -> list[types.Resource]:
    resources = []
    for vault_name, vault in vaults.items():
        for file in vault.recent_files(RECENT_FILES_PER_VAULT):
            resources.append(
                types.Resource(
                    uri=pydantic.networks.AnyUrl(resource_uri(vault_name, file.path)),
                    name=file.name,
                    description=f"{vault_name}: {file.path}",
                    mimeType="text/markdown" if file.name.endswith(".md") else "text/plain",
                )
            )
    return resources


async def read_note(vaults: dict[str, Vault], uri: pydantic.networks.AnyUrl) -> str:
    """Read the note behind a ``vault://<vault>/<path>`` URI."""
    logger.info("Reading resource: %s", uri)
    if uri.scheme != RESOURCE_SCHEME:
        raise ValueError(f"Unsupported scheme: {uri.scheme}")

    if not uri.path or not uri.host:
        raise ValueError("Missing path")

    vault_name = unquote(uri.host)
    vault = vaults.get(vault_name)
    if not vault:
        raise ValueError(f"Unknown vault: {vault_name}")

    # Remove leading slash
    note_path = unquote(uri.path.lstrip("/"))
    try:
        return await vault.read_content(note_path)
    except OSError as e:
        raise ValueError(f"Note not readable: {note_path}: {e}") from e


def run_server(
    vaults: dict[str, Path],
    watch_directories: bool = False,
    config: SearchConfig | None = None,
):
    server = Server("vault-search")
    vault_map = {name: Vault(name, path) for name, path in vaults.items()}
    searchers = {name: Searcher(vault, config) for name, vault in vault_map.items()}

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        """
        List available tools.
        """
        return [
            types.Tool(
                name="search-notes",
                description="Search vault notes by file name, path and full-text content",
                inputSchema=SearchNotesArguments.model_json_schema(),
            )
        ]

    @server.call_tool()
    async def handle_call_tool(
        name: str, arguments: dict | None
    ) -> list[types.TextContent | types.ImageContent | types.EmbeddedResource]:
        """
        Handle tool execution requests.
        """
        return await search_notes(searchers, name, arguments)

    @server.list_resources()
    async def handle_list_resources() -> list[types.Resource]:
        """
        List recently modified files of every vault.
        """
        return list_recent_notes(vault_map)

    @server.read_resource()
    async def handle_read_resource(uri: pydantic.networks.AnyUrl) -> str:
        """
        Read a resource.
        """
        return await read_note(vault_map, uri)

    async def run_server():
        watchers: list[DirectoryWatcher] = []
        if watch_directories:
            loop = asyncio.get_running_loop()
            watchers = [
                DirectoryWatcher(vault.root, vault.tree_changed, loop=loop)
                for vault in vault_map.values()
            ]
            for watcher in watchers:
                watcher.start()

        try:
            # Run the server using stdin/stdout streams
            async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
                await server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name="vault-search",
                        server_version=__version__,
                        capabilities=server.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={},
                        ),
                    ),
                )
        finally:
            for watcher in watchers:
                watcher.stop()

    logger.info("Starting server for vaults: %s", ", ".join(vault_map))

    asyncio.run(run_server())
