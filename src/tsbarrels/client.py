"""
ts-barrels Client Facade

Single entry point for programmatic use of ts-barrels.  Wraps generation
and previewing behind an instance-based API with optional async support.

Usage::

    from tsbarrels import Barrels

    # From environment variables
    client = Barrels()

    # With explicit configuration
    from tsbarrels.core.config import BarrelConfig
    client = Barrels(config=BarrelConfig(barrel_name="barrel.ts"))

    # Generate barrels for a whole tree
    result = client.generate("./src/components", recursive=True)
    print(f"{len(result.written)} barrels written, exit code {result.exit_code}")

    # See what a directory's barrel would contain
    print(client.preview("./src/components/button"))

    # Async variants (for FastAPI / editor servers)
    result = await client.agenerate("./src", recursive=True)
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Dict, Optional

from tsbarrels.core.config import BarrelConfig
from tsbarrels.core.generator import (
    DirectoryResult,
    GenerationOptions,
    GenerationPipeline,
    GenerationResult,
)
from tsbarrels.core.writer import plan_barrel
from tsbarrels.exceptions import ParseError, ScanPermissionError

logger = logging.getLogger(__name__)


class Barrels:
    """
    High-level ts-barrels client.

    Each instance carries its own :class:`BarrelConfig` and never touches
    global state.

    Args:
        config: Explicit configuration object.  When *None*, a config is
            built from environment variables plus keyword overrides.
        validate_on_init: If True, call :meth:`BarrelConfig.validate` in
            __init__ so an invalid configuration surfaces immediately.
        **kwargs: Forwarded to :class:`BarrelConfig` when *config* is
            ``None`` (e.g. ``barrel_name="barrel.ts"``).
    """

    def __init__(
        self,
        config: BarrelConfig | None = None,
        *,
        validate_on_init: bool = False,
        **kwargs,
    ):
        if config is not None:
            self._config = config
        elif kwargs:
            self._config = BarrelConfig.from_env().with_overrides(**kwargs)
        else:
            self._config = BarrelConfig.from_env()

        if validate_on_init:
            self._config.validate()

    # ── Configuration ─────────────────────────────────────────────

    @property
    def config(self) -> BarrelConfig:
        """The active configuration for this client."""
        return self._config

    # ── Generation ────────────────────────────────────────────────

    def generate(
        self,
        directory: str | Path,
        *,
        recursive: bool = False,
        force: bool = False,
        name: str | None = None,
        dry_run: bool = False,
        fail_fast: bool = False,
        jobs: int | None = None,
        show_progress: bool = False,
        on_directory: Optional[Callable[[DirectoryResult], None]] = None,
    ) -> GenerationResult:
        """
        Generate the barrel for *directory* (and its sub-directories when
        *recursive*).

        Args:
            directory: Target directory.
            recursive: Build barrels leaf-to-root for the whole tree.
            force: Overwrite existing barrel files.
            name: Barrel filename (default from config, ``index.ts``).
            dry_run: Compute everything, write nothing.
            fail_fast: Stop after the first level that had a failure.
            jobs: Worker threads for sibling directories.
            show_progress: Show a tqdm progress bar.
            on_directory: Callback receiving each directory result.

        Returns:
            :class:`GenerationResult` with per-directory outcomes.

        Raises:
            NotFoundError: If *directory* does not exist.
            WriteError: If the root is unwritable or its barrel cannot be written.
            ConfigError: If *name* is not a valid barrel filename.
        """
        options = GenerationOptions(
            recursive=recursive,
            force=force,
            barrel_name=name,
            dry_run=dry_run,
            fail_fast=fail_fast,
            jobs=jobs,
        )
        pipeline = GenerationPipeline(
            root_dir=Path(directory),
            options=options,
            config=self._config,
            show_progress=show_progress,
            on_directory=on_directory,
        )
        return pipeline.run()

    def preview(self, directory: str | Path, *, name: str | None = None) -> str:
        """
        Return the barrel text *directory* would get, without writing it.

        Only the directory's own modules are considered (single-directory
        mode).  Unparseable modules are left out, as in a real run.

        Raises:
            NotFoundError: If *directory* does not exist.
        """
        pipeline = GenerationPipeline(
            root_dir=Path(directory),
            options=GenerationOptions(barrel_name=name, dry_run=True),
            config=self._config,
        )
        pipeline.config.validate()
        node = pipeline.snapshot()
        descriptors = []
        for module in node.modules:
            try:
                descriptors.append(pipeline.extractor.extract_file(module))
            except (ParseError, ScanPermissionError) as exc:
                logger.warning(f"Leaving {module} out of the preview: {exc}")
        return plan_barrel(node.path, descriptors, quote=pipeline.config.quote).text

    # ── Async variants ────────────────────────────────────────────
    # These use asyncio.to_thread() to run sync operations off the
    # event loop.  They raise the same exceptions as the sync methods.

    async def agenerate(
        self,
        directory: str | Path,
        *,
        recursive: bool = False,
        force: bool = False,
        name: str | None = None,
        dry_run: bool = False,
    ) -> GenerationResult:
        """Async variant of :meth:`generate`. Raises same exceptions as sync."""
        return await asyncio.to_thread(
            self.generate, directory,
            recursive=recursive, force=force, name=name, dry_run=dry_run,
        )

    async def apreview(self, directory: str | Path, *, name: str | None = None) -> str:
        """Async variant of :meth:`preview`. Raises same exceptions as sync."""
        return await asyncio.to_thread(self.preview, directory, name=name)

    # ── Health (for agents / status endpoints) ─────────────────────

    def health(self) -> Dict[str, object]:
        """
        Return a small status dict for agents or health checks.

        Touches neither the filesystem nor the network.
        """
        return {
            "version": __import__("tsbarrels", fromlist=["__version__"]).__version__,
            "barrel_name": self._config.barrel_name,
            "extensions": sorted(self._config.target_extensions),
        }
