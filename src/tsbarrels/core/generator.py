"""
ts-barrels Generation Pipeline

Coordinates scanning, export extraction and barrel writing for one
directory or, in recursive mode, for a whole tree from the leaves up.

Recursive runs work on a snapshot of the tree taken before anything is
written.  Directories are processed one depth level at a time, deepest
first: siblings on a level are independent and run on a thread pool, and a
parent only starts once every child has finished, so it can re-export the
barrels its children just produced.

Per-module and per-directory failures are recorded and reported in the
final summary; only a missing target or an unwritable root aborts a run.
"""

import logging
import os
import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from tqdm import tqdm

from tsbarrels.core.config import BarrelConfig
from tsbarrels.core.extractor import ExportDescriptor, ExportExtractor
from tsbarrels.core.scanner import DirectoryNode, build_tree, scan_directory
from tsbarrels.core.writer import BarrelContent, Outcome, plan_barrel, write_barrel
from tsbarrels.exceptions import ParseError, ScanPermissionError, WriteError

logger = logging.getLogger(__name__)


# =============================================================================
# Data Models
# =============================================================================

@dataclass(frozen=True)
class GenerationOptions:
    """Flags for one run.  ``barrel_name`` and ``jobs`` default to the config."""
    recursive: bool = False
    force: bool = False
    barrel_name: Optional[str] = None
    dry_run: bool = False
    fail_fast: bool = False
    jobs: Optional[int] = None


@dataclass
class ModuleFailure:
    """A module that could not be read or parsed."""
    path: str
    error: str
    kind: str = "parse"


@dataclass
class DirectoryResult:
    """Outcome of processing one directory."""
    path: str
    outcome: Outcome
    reason: str = ""
    barrel_path: str = ""
    exported: List[str] = field(default_factory=list)
    failed_modules: List[ModuleFailure] = field(default_factory=list)
    collisions: List[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome is not Outcome.FAILED and not self.failed_modules

    def to_dict(self) -> dict:
        data = asdict(self)
        data["outcome"] = self.outcome.value
        return data


@dataclass
class GenerationResult:
    """Typed result returned by :meth:`GenerationPipeline.run`."""
    root_dir: str = ""
    barrel_name: str = ""
    recursive: bool = False
    dry_run: bool = False
    directories: List[DirectoryResult] = field(default_factory=list)
    aborted: bool = False

    def _with(self, outcome: Outcome) -> List[DirectoryResult]:
        return [d for d in self.directories if d.outcome is outcome]

    @property
    def written(self) -> List[DirectoryResult]:
        return self._with(Outcome.WRITTEN)

    @property
    def skipped(self) -> List[DirectoryResult]:
        return self._with(Outcome.SKIPPED)

    @property
    def failed(self) -> List[DirectoryResult]:
        return self._with(Outcome.FAILED)

    @property
    def failed_modules(self) -> List[ModuleFailure]:
        return [m for d in self.directories for m in d.failed_modules]

    @property
    def collisions(self) -> List[dict]:
        return [c for d in self.directories for c in d.collisions]

    @property
    def ok(self) -> bool:
        return not self.aborted and all(d.ok for d in self.directories)

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def to_dict(self) -> dict:
        """Return a JSON-serializable dict for API/agent pipelines."""
        return {
            "root_dir": self.root_dir,
            "barrel_name": self.barrel_name,
            "recursive": self.recursive,
            "dry_run": self.dry_run,
            "aborted": self.aborted,
            "exit_code": self.exit_code,
            "counts": {
                "written": len(self.written),
                "skipped": len(self.skipped),
                "failed": len(self.failed),
                "failed_modules": len(self.failed_modules),
                "collisions": len(self.collisions),
            },
            "directories": [d.to_dict() for d in self.directories],
        }

    def summary(self) -> str:
        """Human-readable report listing every written, skipped and failed path."""
        width = min(shutil.get_terminal_size().columns, 78)
        line = "─" * width
        root = Path(self.root_dir)

        def rel(p: str) -> str:
            try:
                return str(Path(p).relative_to(root)) or "."
            except ValueError:
                return p

        title = "ts-barrels — Dry Run" if self.dry_run else "ts-barrels — Generation Complete"
        out = [line, f"  {title}", line, f"  Root : {self.root_dir}", ""]

        for heading, items in (
            ("Written", self.written),
            ("Skipped", self.skipped),
            ("Failed", self.failed),
        ):
            out.append(f"  {heading:<8} {len(items):>5,}")
            for d in items:
                target = rel(d.barrel_path or d.path)
                out.append(f"    {target}  ({d.reason})" if d.reason else f"    {target}")

        if self.failed_modules:
            out.append("")
            out.append(f"  Modules that failed to parse  {len(self.failed_modules):>5,}")
            for m in self.failed_modules:
                out.append(f"    {rel(m.path)}: {m.error}")
        if self.collisions:
            out.append("")
            out.append(f"  Export name collisions        {len(self.collisions):>5,}")
            for c in self.collisions:
                out.append(
                    f"    {c['directory']}: '{c['name']}' kept from {c['kept']}, "
                    f"dropped from {c['dropped']}"
                )
        if self.aborted:
            out.append("")
            out.append("  Stopped after the first failure (--fail-fast).")
        out.append(line)
        return "\n".join(out)


# =============================================================================
# Generation Pipeline
# =============================================================================

class GenerationPipeline:
    """
    Orchestrates barrel generation for a target directory.

    Args:
        root_dir: Directory to generate the barrel for (the root of the
            tree in recursive mode).
        options: Run flags.  Defaults to a single, non-forced pass.
        config: Scanning / rendering configuration.
        show_progress: Show a tqdm progress bar over directories.
        on_directory: Called with each :class:`DirectoryResult` as soon as
            it is known (from the thread that runs the pipeline).
    """

    def __init__(
        self,
        root_dir: Path,
        options: GenerationOptions | None = None,
        config: BarrelConfig | None = None,
        show_progress: bool = False,
        on_directory: Callable[[DirectoryResult], None] | None = None,
    ):
        self.root_dir = Path(root_dir)
        self.options = options or GenerationOptions()
        base = config or BarrelConfig.from_env()
        self.config = base.with_overrides(
            barrel_name=self.options.barrel_name,
            jobs=self.options.jobs,
        )
        self.show_progress = show_progress
        self.on_directory = on_directory
        self.extractor = ExportExtractor()

    @property
    def barrel_name(self) -> str:
        return self.config.barrel_name

    def snapshot(self) -> DirectoryNode:
        """Scan the target: the whole tree when recursive, else one directory."""
        if self.options.recursive:
            return build_tree(self.root_dir, self.barrel_name, self.config)
        return scan_directory(self.root_dir, self.barrel_name, self.config)

    def run(self) -> GenerationResult:
        """
        Execute the generation pass.

        Raises:
            ConfigError: invalid barrel name or configuration.
            NotFoundError: the target does not exist or is not a directory.
            ScanPermissionError: the target directory cannot be listed.
            WriteError: the root is not writable, or writing its barrel failed
                (``exc.result`` then carries the partial result).
        """
        self.config.validate()
        tree = self.snapshot()
        root_path = tree.path

        if not self.options.dry_run and not os.access(root_path, os.W_OK):
            raise WriteError(f"Target directory is not writable: {root_path}")

        result = GenerationResult(
            root_dir=str(root_path),
            barrel_name=self.barrel_name,
            recursive=self.options.recursive,
            dry_run=self.options.dry_run,
        )
        levels = self._levels(tree)
        total = sum(len(level) for level in levels)

        logger.info(
            f"Generating '{self.barrel_name}' in {root_path} "
            f"({'recursive, ' if self.options.recursive else ''}{total} "
            f"director{'y' if total == 1 else 'ies'})"
        )

        exports: Dict[Path, Optional[BarrelContent]] = {}
        with tqdm(total=total, desc="Generating barrels", unit="dir",
                  disable=not self.show_progress) as pbar:
            for level in levels:
                for directory, content in self._process_level(level, exports, pbar):
                    exports[Path(directory.path)] = content
                    result.directories.append(directory)
                    if self.on_directory is not None:
                        self.on_directory(directory)
                if self.options.fail_fast and not all(
                    d.ok for d in result.directories
                ):
                    result.aborted = True
                    logger.warning("Stopping after failure (fail-fast)")
                    break

        root_result = next(
            (d for d in result.directories if Path(d.path) == root_path), None
        )
        if root_result is not None and root_result.reason.startswith("write failed"):
            exc = WriteError(f"Cannot write root barrel {root_result.barrel_path}")
            exc.result = result
            raise exc
        return result

    # ── Internals ─────────────────────────────────────────────────

    def _levels(self, tree: DirectoryNode) -> List[List[DirectoryNode]]:
        if not self.options.recursive:
            return [[tree]]
        by_depth: Dict[int, List[DirectoryNode]] = {}
        for node in tree.walk():
            by_depth.setdefault(node.depth, []).append(node)
        return [by_depth[d] for d in sorted(by_depth, reverse=True)]

    def _process_level(
        self,
        level: List[DirectoryNode],
        exports: Dict[Path, Optional[BarrelContent]],
        pbar,
    ) -> List[Tuple[DirectoryResult, Optional[BarrelContent]]]:
        workers = min(self.config.jobs, len(level))
        if workers <= 1:
            done = []
            for node in level:
                done.append(self._process_directory(node, exports))
                pbar.update(1)
            return done

        results: Dict[Path, Tuple[DirectoryResult, Optional[BarrelContent]]] = {}
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self._process_directory, node, exports): node
                for node in level
            }
            for future in as_completed(futures):
                node = futures[future]
                results[node.path] = future.result()
                pbar.update(1)
        return [results[node.path] for node in level]

    def _process_directory(
        self, node: DirectoryNode, exports: Dict[Path, Optional[BarrelContent]],
    ) -> Tuple[DirectoryResult, Optional[BarrelContent]]:
        barrel_path = node.path / self.barrel_name
        if node.error is not None:
            return DirectoryResult(
                path=str(node.path), outcome=Outcome.FAILED, reason=str(node.error),
            ), None

        descriptors: List[ExportDescriptor] = []
        failures: List[ModuleFailure] = []
        for module in node.modules:
            try:
                descriptors.append(self.extractor.extract_file(module))
            except ParseError as exc:
                logger.error(f"Failed to parse {module}: {exc.message}")
                failures.append(ModuleFailure(path=str(module), error=exc.message))
            except ScanPermissionError as exc:
                logger.error(str(exc))
                failures.append(ModuleFailure(path=str(module), error=str(exc), kind="permission"))

        if self.options.recursive:
            for child in node.children:
                child_content = exports.get(child.path)
                if child_content is not None and not child_content.is_empty:
                    descriptors.append(
                        child_content.as_descriptor(child.path / self.barrel_name)
                    )

        content = plan_barrel(node.path, descriptors, quote=self.config.quote)
        collisions = []
        for warning in content.collisions:
            logger.warning(f"{node.path}: {warning}")
            collisions.append({"directory": str(node.path), **warning.to_dict()})

        directory = DirectoryResult(
            path=str(node.path),
            outcome=Outcome.SKIPPED,
            barrel_path=str(barrel_path),
            failed_modules=failures,
            collisions=collisions,
        )
        if content.is_empty:
            directory.reason = "nothing to export"
            directory.barrel_path = ""
            logger.debug(f"Nothing to export in {node.path}")
            return directory, None

        directory.exported = list(content.values + content.types)
        try:
            directory.outcome, directory.reason = write_barrel(
                barrel_path, content.text,
                force=self.options.force, dry_run=self.options.dry_run,
            )
        except WriteError as exc:
            logger.error(str(exc))
            directory.outcome = Outcome.FAILED
            directory.reason = f"write failed: {exc}"
            return directory, None

        logger.info(f"  {directory.outcome.value:<8} {barrel_path}  ({directory.reason})")
        return directory, content
