"""
ts-barrels Export Extractor

Statically determines what a TypeScript / JavaScript module exports, using
tree-sitter grammars for precise parsing.  Nothing is evaluated and no
type checker is involved: the descriptor reflects the syntax of the file
(plus the files it ``export *``-s from, when those are relative and can be
found on disk).
"""

import logging
import re
from dataclasses import dataclass, asdict
from pathlib import Path, PurePosixPath
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

import tree_sitter_javascript as tsjs
import tree_sitter_typescript as tsts
from tree_sitter import Language, Parser

from tsbarrels.exceptions import ParseError, ScanPermissionError

logger = logging.getLogger(__name__)

JS_LANGUAGE = Language(tsjs.language())
TS_LANGUAGE = Language(tsts.language_typescript())
TSX_LANGUAGE = Language(tsts.language_tsx())

# Map file extensions to tree-sitter languages
_LANG_MAP: Dict[str, Language] = {
    ".ts": TS_LANGUAGE,
    ".mts": TS_LANGUAGE,
    ".cts": TS_LANGUAGE,
    ".tsx": TSX_LANGUAGE,
    ".js": JS_LANGUAGE,
    ".jsx": JS_LANGUAGE,
    ".mjs": JS_LANGUAGE,
    ".cjs": JS_LANGUAGE,
}

# Probe order when resolving `export * from './x'`
_RESOLVE_EXTENSIONS: Tuple[str, ...] = (
    ".ts", ".tsx", ".mts", ".cts", ".d.ts", ".js", ".jsx", ".mjs", ".cjs",
)
# ESM-style specifiers name the emitted file: './x.js' is './x.ts' on disk
_EMITTED_TO_SOURCE: Dict[str, Tuple[str, ...]] = {
    ".js": (".ts", ".tsx", ".d.ts"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
    ".cjs": (".cts",),
}

_TYPE_DECLARATIONS = frozenset(("interface_declaration", "type_alias_declaration"))
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
# TypeScript 5.0 `export type * from` is not in the tree-sitter grammar yet
_TYPE_STAR_RE = re.compile(
    r"^[ \t]*export\s+type\s*\*\s*(?:as\s+([A-Za-z_$][\w$]*)\s+)?"
    r"from\s*(['\"])([^'\"\n]+)\2[ \t]*;?",
    re.MULTILINE,
)


# =============================================================================
# Data Models
# =============================================================================

@dataclass(frozen=True)
class ExportDescriptor:
    """The exports of one module (or of one child barrel).

    ``values`` and ``types`` keep first-seen source order and never share
    a name: a name that is both a type and a value counts as a value.
    ``star_sources`` lists ``export *`` specifiers whose names could not be
    enumerated; the writer re-exports such a module wholesale.
    """
    path: Path
    values: Tuple[str, ...] = ()
    types: Tuple[str, ...] = ()
    has_default: bool = False
    default_alias: Optional[str] = None
    default_is_type: bool = False
    star_sources: Tuple[str, ...] = ()
    is_barrel: bool = False

    @property
    def names(self) -> Tuple[str, ...]:
        """Every name this module contributes to a barrel, default alias included."""
        extra = (self.default_alias,) if self.has_default and self.default_alias else ()
        return extra + self.values + self.types

    @property
    def is_empty(self) -> bool:
        return not self.names and not self.star_sources

    def to_dict(self) -> dict:
        data = asdict(self)
        data["path"] = str(self.path)
        return data


class _ExportCollector:
    """Accumulates names while walking one module's export statements."""

    def __init__(self, path: Path):
        self.path = path
        self._values: Dict[str, None] = {}
        self._types: Dict[str, None] = {}
        self._stars: Dict[str, None] = {}
        self._has_default = False
        self._default_alias: Optional[str] = None
        self._default_is_type = False

    def add(self, name: str, is_type: bool) -> None:
        if is_type:
            if name not in self._values:
                self._types[name] = None
        else:
            self._types.pop(name, None)
            self._values[name] = None

    def set_default(self, alias: Optional[str], is_type: bool) -> None:
        self._has_default = True
        self._default_alias = alias
        self._default_is_type = is_type

    def add_star(self, specifier: str) -> None:
        self._stars[specifier] = None

    def build(self) -> ExportDescriptor:
        values = tuple(self._values)
        types = tuple(self._types)
        has_default = self._has_default
        alias = None
        if has_default:
            alias = self._pick_default_alias(set(values) | set(types))
            has_default = alias is not None
        return ExportDescriptor(
            path=self.path,
            values=values,
            types=types,
            has_default=has_default,
            default_alias=alias,
            default_is_type=self._default_is_type if has_default else False,
            star_sources=tuple(self._stars),
        )

    def _pick_default_alias(self, named: Set[str]) -> Optional[str]:
        declared = self._default_alias
        if declared and declared in named:
            # `export default Foo` next to `export { Foo }`: already re-exported
            return None
        if declared and _IDENTIFIER_RE.match(declared):
            return declared
        stem_alias = default_alias_for(self.path)
        if stem_alias in named:
            return f"{stem_alias}Default"
        return stem_alias


# =============================================================================
# Helpers
# =============================================================================

def _text(node) -> str:
    return node.text.decode("utf-8")


def _string_value(node) -> str:
    """Return the contents of a string literal node without its quotes."""
    return _text(node)[1:-1]


def _module_export_name(node) -> str:
    return _string_value(node) if node.type == "string" else _text(node)


def _has_token(node, token: str) -> bool:
    return any(not child.is_named and child.type == token for child in node.children)


def _first_error_line(node) -> int:
    for child in node.children:
        if child.type == "ERROR" or child.is_missing:
            return child.start_point[0] + 1
        if child.has_error:
            return _first_error_line(child)
    return node.start_point[0] + 1


def _binding_names(node) -> List[str]:
    """Names bound by a variable declarator target, including destructuring."""
    kind = node.type
    if kind in ("identifier", "shorthand_property_identifier_pattern"):
        return [_text(node)]
    if kind == "pair_pattern":
        value = node.child_by_field_name("value")
        return _binding_names(value) if value is not None else []
    if kind in ("object_assignment_pattern", "assignment_pattern"):
        left = node.child_by_field_name("left")
        return _binding_names(left) if left is not None else []
    if kind in ("object_pattern", "array_pattern", "rest_pattern"):
        names: List[str] = []
        for child in node.named_children:
            names.extend(_binding_names(child))
        return names
    return []


def _strip_type_star_exports(source: str) -> Tuple[str, List[Tuple[Optional[str], str]]]:
    """
    Blank out ``export type * [as ns] from '...'`` statements so the rest of
    the module parses, keeping line numbers intact.

    Returns the blanked source and ``(namespace, specifier)`` per statement.
    """
    found: List[Tuple[Optional[str], str]] = []

    def _blank(match) -> str:
        found.append((match.group(1), match.group(3)))
        return re.sub(r"[^\n]", " ", match.group(0))

    return _TYPE_STAR_RE.sub(_blank, source), found


def default_alias_for(path: Path) -> str:
    """
    Derive an identifier for a default export from the file name.

    ``user-service.ts`` becomes ``userService``; ``Button.tsx`` stays
    ``Button``; a leading digit is prefixed with ``_``.
    """
    stem = path.name.split(".")[0] or "module"
    parts = [p for p in re.split(r"[^A-Za-z0-9_$]+", stem) if p]
    if not parts:
        return "module"
    alias = parts[0] + "".join(p[:1].upper() + p[1:] for p in parts[1:])
    if alias[0].isdigit():
        alias = f"_{alias}"
    return alias


def resolve_module(base_dir: Path, specifier: str) -> Optional[Path]:
    """Resolve a relative module specifier to a file on disk, or ``None``."""
    if not specifier.startswith("."):
        return None
    raw = base_dir / specifier
    candidates: List[Path] = []
    suffix = raw.suffix
    if suffix in _EMITTED_TO_SOURCE:
        candidates.extend(raw.with_suffix(ext) for ext in _EMITTED_TO_SOURCE[suffix])
    candidates.append(raw)
    candidates.extend(raw.with_name(raw.name + ext) for ext in _RESOLVE_EXTENSIONS)
    candidates.extend(raw / f"index{ext}" for ext in _RESOLVE_EXTENSIONS)
    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()
    return None


# =============================================================================
# Export Extractor
# =============================================================================

class ExportExtractor:
    """Extract export descriptors from TS/JS source using tree-sitter."""

    def _get_language(self, file_path: Path) -> Language:
        """Pick the right tree-sitter language from the file extension."""
        name = PurePosixPath(file_path).name.lower()
        if name.endswith(".d.ts"):
            return TS_LANGUAGE
        ext = PurePosixPath(name).suffix
        return _LANG_MAP.get(ext, TS_LANGUAGE)

    def _parse(self, source: str, file_path: Path):
        parser = Parser(self._get_language(file_path))
        return parser.parse(source.encode("utf-8"))

    # ── Public API ────────────────────────────────────────────────

    def extract(self, source: str, path: Path | str = "module.ts") -> ExportDescriptor:
        """
        Build the :class:`ExportDescriptor` for *source*.

        Raises :class:`ParseError` when the source does not parse cleanly.
        """
        path = Path(path)
        return self._extract_source(source, path, frozenset((path.resolve(),)))

    def extract_file(self, path: Path | str) -> ExportDescriptor:
        """Read and extract a module from disk."""
        path = Path(path)
        return self._extract_path(path, frozenset((path.resolve(),)))

    # ── Internals ─────────────────────────────────────────────────

    def _extract_path(self, path: Path, visited: FrozenSet[Path]) -> ExportDescriptor:
        try:
            raw = path.read_bytes()
        except PermissionError as exc:
            raise ScanPermissionError(f"Cannot read {path}: {exc.strerror}") from exc
        except OSError as exc:
            raise ParseError(path, f"cannot read file ({exc.strerror})") from exc
        try:
            source = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(path, f"not valid UTF-8 ({exc.reason})") from exc
        return self._extract_source(source, path, visited)

    def _extract_source(
        self, source: str, path: Path, visited: FrozenSet[Path],
    ) -> ExportDescriptor:
        source, type_stars = _strip_type_star_exports(source)
        tree = self._parse(source, path)
        root = tree.root_node
        if root.has_error:
            raise ParseError(path, f"syntax error near line {_first_error_line(root)}")

        local_types, local_values = self._local_declarations(root)
        collector = _ExportCollector(path)
        for node in root.named_children:
            if node.type == "export_statement":
                self._collect_export(node, path, collector, local_types, local_values, visited)
        for namespace, specifier in type_stars:
            if namespace:
                collector.add(namespace, True)
            else:
                self._collect_star(specifier, path, collector, visited, type_only=True)
        return collector.build()

    def _collect_export(
        self,
        node,
        path: Path,
        collector: _ExportCollector,
        local_types: Set[str],
        local_values: Set[str],
        visited: FrozenSet[Path],
    ) -> None:
        declaration = node.child_by_field_name("declaration")
        source_node = node.child_by_field_name("source")
        source_spec = _string_value(source_node) if source_node is not None else None

        if _has_token(node, "default"):
            self._collect_default(node, declaration, collector, local_types, local_values)
            return

        if declaration is not None:
            for name, is_type in self._declaration_names(declaration):
                collector.add(name, is_type)
            return

        type_only = _has_token(node, "type")
        for child in node.named_children:
            if child.type == "export_clause":
                for spec in child.named_children:
                    if spec.type == "export_specifier":
                        self._collect_specifier(
                            spec, type_only, source_spec, collector,
                            local_types, local_values,
                        )
                return
            if child.type == "namespace_export":
                name_node = child.named_children[0] if child.named_children else None
                if name_node is not None:
                    collector.add(_module_export_name(name_node), type_only)
                return

        if _has_token(node, "*") and source_spec is not None:
            self._collect_star(source_spec, path, collector, visited)
        elif _has_token(node, "="):
            logger.debug(f"{path}: 'export =' assignment cannot be re-exported, ignored")

    def _collect_default(self, node, declaration, collector, local_types, local_values) -> None:
        alias: Optional[str] = None
        is_type = False
        if declaration is not None:
            names = self._declaration_names(declaration)
            if names:
                alias, is_type = names[0]
        else:
            value = node.child_by_field_name("value")
            if value is not None:
                if value.type == "identifier":
                    alias = _text(value)
                    is_type = alias in local_types and alias not in local_values
                else:
                    # Named function / class expressions
                    name_node = value.child_by_field_name("name")
                    if name_node is not None and name_node.type in ("identifier", "type_identifier"):
                        alias = _text(name_node)
        collector.set_default(alias, is_type)

    def _collect_specifier(
        self, spec, type_only, source_spec, collector, local_types, local_values,
    ) -> None:
        name_node = spec.child_by_field_name("name")
        if name_node is None:
            return
        alias_node = spec.child_by_field_name("alias")
        local = _module_export_name(name_node)
        exported = _module_export_name(alias_node) if alias_node is not None else local

        is_type = type_only or _has_token(spec, "type")
        if not is_type and source_spec is None:
            is_type = local in local_types and local not in local_values

        if exported == "default":
            collector.set_default(local if local != "default" else None, is_type)
        else:
            collector.add(exported, is_type)

    def _collect_star(
        self,
        specifier: str,
        path: Path,
        collector: _ExportCollector,
        visited: FrozenSet[Path],
        type_only: bool = False,
    ) -> None:
        target = resolve_module(path.parent, specifier)
        if target is None:
            logger.debug(f"{path}: cannot resolve 'export * from \"{specifier}\"'")
            collector.add_star(specifier)
            return
        if target in visited:
            return
        try:
            nested = self._extract_path(target, visited | {target})
        except (ParseError, ScanPermissionError) as exc:
            logger.debug(f"{path}: star re-export source unreadable: {exc}")
            collector.add_star(specifier)
            return
        for name in nested.values:
            collector.add(name, type_only)
        for name in nested.types:
            collector.add(name, True)
        if nested.star_sources:
            collector.add_star(specifier)

    def _declaration_names(self, node) -> List[Tuple[str, bool]]:
        """Return ``(name, is_type)`` for every binding a declaration introduces."""
        kind = node.type
        if kind in ("lexical_declaration", "variable_declaration"):
            names: List[Tuple[str, bool]] = []
            for child in node.named_children:
                if child.type == "variable_declarator":
                    target = child.child_by_field_name("name")
                    if target is not None:
                        names.extend((n, False) for n in _binding_names(target))
            return names
        if kind == "ambient_declaration":
            for child in node.named_children:
                found = self._declaration_names(child)
                if found:
                    return found
            return []
        if kind == "import_alias":
            for child in node.named_children:
                if child.type == "identifier":
                    return [(_text(child), False)]
            return []

        name_node = node.child_by_field_name("name")
        if name_node is None or name_node.type == "string":
            return []
        name = _text(name_node)
        if name_node.type == "nested_identifier":
            name = name.split(".")[0]
        return [(name, kind in _TYPE_DECLARATIONS)]

    def _local_declarations(self, root) -> Tuple[Set[str], Set[str]]:
        """Collect top-level type-only and value names, imports included."""
        types: Set[str] = set()
        values: Set[str] = set()
        for node in root.named_children:
            if node.type == "import_statement":
                self._import_names(node, types, values)
                continue
            target = node
            if node.type == "export_statement":
                target = node.child_by_field_name("declaration")
                if target is None:
                    continue
            for name, is_type in self._declaration_names(target):
                (types if is_type else values).add(name)
        return types, values

    @staticmethod
    def _import_names(node, types: Set[str], values: Set[str]) -> None:
        type_only = _has_token(node, "type")
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for child in clause.named_children:
                if child.type == "identifier":
                    (types if type_only else values).add(_text(child))
                elif child.type == "namespace_import":
                    for ident in child.named_children:
                        if ident.type == "identifier":
                            (types if type_only else values).add(_text(ident))
                elif child.type == "named_imports":
                    for spec in child.named_children:
                        if spec.type != "import_specifier":
                            continue
                        bound = spec.child_by_field_name("alias")
                        if bound is None:
                            bound = spec.child_by_field_name("name")
                        if bound is None:
                            continue
                        is_type = type_only or _has_token(spec, "type")
                        (types if is_type else values).add(_module_export_name(bound))
