"""
ts-barrels Barrel Writer

Turns a directory's export descriptors into re-export statements and
writes the barrel file.

Output layout (one clause group per child, in scan order)::

    export { default as Foo, bar } from './foo';
    export type { FooProps } from './foo';
    export * from './legacy';
    export {} from './polyfills';
    export { Button, Input } from './components';

Name collisions between siblings are resolved first-wins: the earliest
module in scan order keeps the name, later modules lose it and a
:class:`~tsbarrels.exceptions.CollisionWarning` is recorded.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from tsbarrels.core.atomic_io import write_text_atomic
from tsbarrels.core.extractor import ExportDescriptor
from tsbarrels.exceptions import CollisionWarning, WriteError

logger = logging.getLogger(__name__)

MAX_LINE_LENGTH = 100
INDENT = "  "

# `import './x.mts'` must name the emitted file
_SPECIFIER_EXTENSIONS: Dict[str, str] = {
    ".ts": "", ".tsx": "", ".js": "", ".jsx": "",
    ".mts": ".mjs", ".cts": ".cjs", ".mjs": ".mjs", ".cjs": ".cjs",
}


class Outcome(str, Enum):
    """Per-directory result of a generation pass."""
    WRITTEN = "written"
    SKIPPED = "skipped"
    FAILED = "failed"


# =============================================================================
# Data Models
# =============================================================================

@dataclass(frozen=True)
class BarrelEntry:
    """The re-export clauses for one child of the directory."""
    specifier: str
    values: Tuple[str, ...] = ()
    types: Tuple[str, ...] = ()
    default_alias: Optional[str] = None
    default_is_type: bool = False
    star: bool = False

    def render(self, quote: str = "'") -> List[str]:
        source = f"{quote}{self.specifier}{quote}"
        lines: List[str] = []
        value_items: List[str] = []
        type_items: List[str] = []

        if self.star:
            lines.append(f"export * from {source};")
        if self.default_alias:
            item = f"default as {self.default_alias}"
            (type_items if self.default_is_type else value_items).append(item)
        if not self.star:
            value_items.extend(sorted(self.values))
            type_items.extend(sorted(self.types))

        if value_items:
            lines.append(_format_clause("export", value_items, source))
        if type_items:
            lines.append(_format_clause("export type", type_items, source))
        if not lines:
            lines.append(f"export {{}} from {source};")
        return lines


@dataclass(frozen=True)
class BarrelContent:
    """A fully planned barrel: its text plus what it exports."""
    entries: Tuple[BarrelEntry, ...] = ()
    collisions: Tuple[CollisionWarning, ...] = ()
    quote: str = "'"

    @property
    def text(self) -> str:
        lines: List[str] = []
        for entry in self.entries:
            lines.extend(entry.render(self.quote))
        return "\n".join(lines) + "\n" if lines else ""

    @property
    def values(self) -> Tuple[str, ...]:
        names: List[str] = []
        for entry in self.entries:
            if entry.default_alias and not entry.default_is_type:
                names.append(entry.default_alias)
            names.extend(entry.values)
        return tuple(names)

    @property
    def types(self) -> Tuple[str, ...]:
        names: List[str] = []
        for entry in self.entries:
            if entry.default_alias and entry.default_is_type:
                names.append(entry.default_alias)
            names.extend(entry.types)
        return tuple(names)

    @property
    def has_star(self) -> bool:
        return any(entry.star for entry in self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def as_descriptor(self, barrel_path: Path) -> ExportDescriptor:
        """Describe this barrel as a child of its parent directory."""
        return ExportDescriptor(
            path=barrel_path,
            values=self.values,
            types=self.types,
            star_sources=("*",) if self.has_star else (),
            is_barrel=True,
        )


# =============================================================================
# Planning & Rendering
# =============================================================================

def _format_clause(keyword: str, items: Sequence[str], source: str) -> str:
    single = f"{keyword} {{ {', '.join(items)} }} from {source};"
    if len(single) <= MAX_LINE_LENGTH:
        return single
    body = "".join(f"{INDENT}{item},\n" for item in items)
    return f"{keyword} {{\n{body}}} from {source};"


def module_specifier(directory: Path, path: Path, keep_index: bool = False) -> str:
    """
    Import specifier for *path* relative to *directory*.

    ``foo.ts`` → ``./foo``; ``sub/index.ts`` → ``./sub`` (``./sub/index``
    with *keep_index*); ``sub/barrel.ts`` → ``./sub/barrel``;
    ``worker.mts`` → ``./worker.mjs``.
    """
    rel = PurePosixPath(path.relative_to(directory).as_posix())
    suffix = rel.suffix
    emitted = _SPECIFIER_EXTENSIONS.get(suffix, suffix)
    rel = rel.with_suffix(emitted) if emitted else rel.with_suffix("")
    if rel.name == "index" and len(rel.parts) > 1 and not keep_index:
        rel = rel.parent
    return f"./{rel.as_posix()}"


def plan_barrel(
    directory: Path,
    descriptors: Iterable[ExportDescriptor],
    quote: str = "'",
) -> BarrelContent:
    """
    Build the barrel for *directory* from its children's descriptors.

    *descriptors* must already be in scan order (modules, then child
    barrels).  Every child gets at least one clause.  A child barrel whose
    short specifier (``./button``) would resolve to a sibling module keeps
    its file stem (``./button/index``).
    """
    descriptors = list(descriptors)
    module_specifiers = {
        module_specifier(directory, d.path) for d in descriptors if not d.is_barrel
    }
    owners: Dict[str, str] = {}
    entries: List[BarrelEntry] = []
    collisions: List[CollisionWarning] = []

    def claim(name: str, specifier: str) -> bool:
        kept = owners.get(name)
        if kept is None:
            owners[name] = specifier
            return True
        collisions.append(CollisionWarning(name, kept=kept, dropped=specifier))
        return False

    for descriptor in descriptors:
        specifier = module_specifier(directory, descriptor.path)
        if descriptor.is_barrel and specifier in module_specifiers:
            specifier = module_specifier(directory, descriptor.path, keep_index=True)
        star = bool(descriptor.star_sources)

        alias = None
        if descriptor.has_default and descriptor.default_alias:
            if claim(descriptor.default_alias, specifier):
                alias = descriptor.default_alias
        values = tuple(n for n in descriptor.values if claim(n, specifier))
        types = tuple(n for n in descriptor.types if claim(n, specifier))

        if star and (len(values) < len(descriptor.values) or len(types) < len(descriptor.types)):
            logger.warning(
                f"{directory}: '{specifier}' is re-exported with 'export *'; "
                "colliding names cannot be excluded from it"
            )

        entries.append(BarrelEntry(
            specifier=specifier,
            values=values,
            types=types,
            default_alias=alias,
            default_is_type=descriptor.default_is_type,
            star=star,
        ))

    return BarrelContent(entries=tuple(entries), collisions=tuple(collisions), quote=quote)


# =============================================================================
# Writing
# =============================================================================

def write_barrel(
    path: Path, text: str, *, force: bool = False, dry_run: bool = False,
) -> Tuple[Outcome, str]:
    """
    Apply the overwrite policy and write *text* to *path*.

    - no file → write it;
    - file exists, not *force* → leave it untouched (``skipped``);
    - file exists, *force* → overwrite, even when identical.

    With *dry_run* the filesystem is never touched and the outcome is the
    one a real run would have produced.

    Raises :class:`WriteError` when the write or rename fails.
    """
    if path.exists():
        if not force:
            try:
                identical = path.read_bytes() == text.encode("utf-8")
            except OSError:
                identical = False
            if identical:
                return Outcome.SKIPPED, "up to date"
            return Outcome.SKIPPED, "exists (use --force to overwrite)"
        reason = "overwritten"
    else:
        reason = "created"

    if dry_run:
        return Outcome.WRITTEN, f"would be {reason}"

    try:
        write_text_atomic(path, text)
    except OSError as exc:
        raise WriteError(f"Cannot write {path}: {exc}") from exc
    logger.debug(f"Wrote {path} ({reason})")
    return Outcome.WRITTEN, reason
