"""
ts-barrels MCP Server

Exposes barrel generation as tools that AI agents (Claude, Cursor,
Windsurf) can invoke natively via the Model Context Protocol, plus a
resource describing the active configuration.

Start with::

    ts-barrels-mcp                              # stdio transport (default)
    ts-barrels-mcp --transport streamable-http  # HTTP for remote clients

Or programmatically::

    from tsbarrels.mcp.server import create_server
    server = create_server()
    server.run()
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Annotated

# FastMCP uses pydantic for validation, so Field should be available
# If ImportError occurs, it indicates the [mcp] extra wasn't installed
from pydantic import Field  # type: ignore[import-untyped]

from tsbarrels.core.config import BarrelConfig

logger = logging.getLogger(__name__)


def create_server(config: BarrelConfig | None = None):
    """
    Build and return a configured FastMCP server instance.

    All tool invocations share one configuration (extensions, exclude
    patterns, default barrel name); per-call arguments override the
    barrel name and flags only.

    Args:
        config: Instance-based configuration.  Defaults to
            ``BarrelConfig.from_env()`` so that the server respects the
            same environment variables as the CLI.

    Raises ``ImportError`` if ``fastmcp`` is not installed (install via
    ``pip install 'ts-barrels[mcp]'``).
    """
    from fastmcp import FastMCP  # type: ignore[import-untyped]

    from tsbarrels.client import Barrels

    cfg = config or BarrelConfig.from_env()
    client = Barrels(config=cfg)

    mcp = FastMCP("ts-barrels")

    def _resolve_path(path: str) -> Path:
        """When path is '.', use TS_BARRELS_DEFAULT_PATH if set (e.g. a Docker mount)."""
        if path == ".":
            default = os.environ.get("TS_BARRELS_DEFAULT_PATH", "").strip()
            if default:
                path = default
        return Path(path).resolve()

    # ==================================================================
    # Tool: generate_barrels
    # ==================================================================

    @mcp.tool()
    def generate_barrels(
        path: Annotated[
            str,
            Field(default=".", description="Directory to generate the barrel file in. Defaults to the current working directory ('.').")
        ] = ".",
        recursive: Annotated[
            bool,
            Field(default=False, description="If True, generate barrels for every sub-directory too, deepest first, so each parent re-exports its children's barrels.")
        ] = False,
        force: Annotated[
            bool,
            Field(default=False, description="If True, overwrite existing barrel files. Default False leaves existing barrels untouched and reports them as skipped.")
        ] = False,
        name: Annotated[
            str | None,
            Field(default=None, description="Barrel filename, e.g. 'index.ts' (default) or 'barrel.ts'.")
        ] = None,
        dry_run: Annotated[
            bool,
            Field(default=False, description="If True, compute the barrels and report what would change without writing anything.")
        ] = False,
    ) -> str:
        """Generate TypeScript barrel files (re-export index files) for a
        directory.

        **When to use this tool:**
        - After adding, renaming or removing modules in a folder that has
          an ``index.ts`` barrel
        - To create barrels for a new component / feature folder

        Returns:
            JSON summary with written, skipped and failed directories,
            modules that failed to parse, export name collisions and the
            exit code a CLI run would have produced.
        """
        root = _resolve_path(path)
        result = client.generate(
            root, recursive=recursive, force=force, name=name, dry_run=dry_run,
        )
        return json.dumps(result.to_dict())

    # ==================================================================
    # Tool: preview_barrel
    # ==================================================================

    @mcp.tool()
    def preview_barrel(
        path: Annotated[
            str,
            Field(default=".", description="Directory whose barrel content to compute.")
        ] = ".",
        name: Annotated[
            str | None,
            Field(default=None, description="Barrel filename used to exclude the existing barrel from its own inputs.")
        ] = None,
    ) -> str:
        """Return the barrel file content a directory would get, without
        writing anything.

        Returns:
            The TypeScript source of the barrel (empty when the directory
            has nothing to export).
        """
        return client.preview(_resolve_path(path), name=name)

    # ==================================================================
    # Tool: health (readiness check)
    # ==================================================================

    @mcp.tool()
    def health() -> str:
        """Check that the ts-barrels MCP server is running and responsive.

        Returns:
            JSON with status, version and default barrel name.
        """
        return json.dumps({"status": "ok", **client.health()})

    # ==================================================================
    # Resource: configuration
    # ==================================================================

    @mcp.resource("tsbarrels://config")
    def server_config() -> str:
        """Active scanning and rendering configuration."""
        return json.dumps(cfg.to_dict(), indent=2)

    logger.debug("ts-barrels MCP server created")
    return mcp
