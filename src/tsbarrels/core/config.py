"""
ts-barrels Configuration Module

Centralized configuration for barrel scanning, extraction and writing.
Each :class:`BarrelConfig` instance is self-contained and is passed through
the call stack; CLI flags and facade keyword arguments override it.
"""

import os
from dataclasses import dataclass, replace
from pathlib import PurePath

DEFAULT_BARREL_NAME = "index.ts"

# Extensions the tree-sitter grammars in extractor.py can parse
SUPPORTED_EXTENSIONS: frozenset = frozenset((
    ".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs",
))


def _split_env_list(raw: str) -> frozenset:
    return frozenset(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class BarrelConfig:
    """
    Instance-based configuration for ts-barrels.

    Create from environment variables::

        config = BarrelConfig.from_env()

    Or with explicit values::

        config = BarrelConfig(barrel_name="barrel.ts", jobs=8)
    """

    # ── Barrel output ─────────────────────────────────────────────
    barrel_name: str = DEFAULT_BARREL_NAME
    quote: str = "'"

    # ── File Processing ───────────────────────────────────────────
    target_extensions: frozenset = frozenset((".ts", ".tsx"))
    exclude_patterns: frozenset = frozenset((
        "*.test.*", "*.spec.*", "*.d.ts", "*.stories.*",
    ))
    exclude_dirs: frozenset = frozenset((
        "node_modules", ".git", "dist", "build", "coverage",
        "__tests__", "__mocks__",
    ))
    include_hidden: bool = False
    max_file_size_kb: int = 1024

    # ── Execution ─────────────────────────────────────────────────
    jobs: int = 4

    # ── Logging ───────────────────────────────────────────────────
    log_level: str = "WARNING"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ── Factory ───────────────────────────────────────────────────

    @classmethod
    def from_env(cls) -> "BarrelConfig":
        """Build a config snapshot from current environment variables.

        Reads :envvar:`TS_BARRELS_NAME`, :envvar:`TS_BARRELS_EXTENSIONS`
        and :envvar:`TS_BARRELS_EXCLUDE` (comma-separated),
        :envvar:`TS_BARRELS_JOBS` and :envvar:`TS_BARRELS_LOG_LEVEL`.
        Unset variables keep the dataclass defaults.
        """
        base = cls()
        extensions = os.getenv("TS_BARRELS_EXTENSIONS", "")
        excludes = os.getenv("TS_BARRELS_EXCLUDE", "")
        jobs_raw = os.getenv("TS_BARRELS_JOBS", "").strip()
        try:
            jobs = int(jobs_raw) if jobs_raw else base.jobs
        except ValueError:
            from tsbarrels.exceptions import ConfigError
            raise ConfigError(f"TS_BARRELS_JOBS must be an integer, got '{jobs_raw}'")
        return cls(
            barrel_name=os.getenv("TS_BARRELS_NAME", "").strip() or base.barrel_name,
            target_extensions=_split_env_list(extensions) or base.target_extensions,
            exclude_patterns=_split_env_list(excludes) or base.exclude_patterns,
            jobs=jobs,
            log_level=os.getenv("TS_BARRELS_LOG_LEVEL", base.log_level).upper(),
        )

    def with_overrides(self, **overrides) -> "BarrelConfig":
        """Return a copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    # ── Validation ────────────────────────────────────────────────

    def validate(self) -> bool:
        """
        Validate the configuration.

        Raises :class:`~tsbarrels.exceptions.ConfigError` on failure.
        """
        from tsbarrels.exceptions import ConfigError

        validate_barrel_name(self.barrel_name)

        bad_ext = sorted(e for e in self.target_extensions if not e.startswith("."))
        if bad_ext:
            raise ConfigError(
                f"Extensions must start with a dot: {', '.join(bad_ext)}"
            )
        unsupported = sorted(self.target_extensions - SUPPORTED_EXTENSIONS)
        if unsupported:
            raise ConfigError(
                f"Unsupported extensions: {', '.join(unsupported)}. "
                f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
            )
        if self.jobs < 1:
            raise ConfigError(f"jobs must be at least 1, got {self.jobs}")
        if self.quote not in ("'", '"'):
            raise ConfigError(f"quote must be ' or \", got {self.quote!r}")
        return True

    def to_dict(self) -> dict:
        """Return a JSON-serializable view of the configuration."""
        return {
            "barrel_name": self.barrel_name,
            "quote": self.quote,
            "target_extensions": sorted(self.target_extensions),
            "exclude_patterns": sorted(self.exclude_patterns),
            "exclude_dirs": sorted(self.exclude_dirs),
            "include_hidden": self.include_hidden,
            "max_file_size_kb": self.max_file_size_kb,
            "jobs": self.jobs,
        }


def validate_barrel_name(name: str) -> str:
    """Check that *name* is a bare filename with a parseable extension."""
    from tsbarrels.exceptions import ConfigError

    if not name or not name.strip():
        raise ConfigError("Barrel filename must not be empty")
    if name in (".", "..") or PurePath(name).name != name or "\\" in name:
        raise ConfigError(
            f"Barrel filename must be a plain file name, got '{name}'"
        )
    suffix = PurePath(name).suffix
    if suffix not in SUPPORTED_EXTENSIONS:
        raise ConfigError(
            f"Barrel filename '{name}' needs one of: "
            f"{', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )
    return name
