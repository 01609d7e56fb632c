"""
Shared fixtures for the ts-barrels test suite.
"""

import sys
from pathlib import Path

import pytest

# Ensure the src/ directory is on the import path so that
# tsbarrels.core.* can be imported without an editable install.
SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(SRC_ROOT))

from tsbarrels.core.config import BarrelConfig  # noqa: E402


# =============================================================================
# Fixtures: configuration
# =============================================================================

@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep TS_BARRELS_* variables from the developer's shell out of tests."""
    for var in ("TS_BARRELS_NAME", "TS_BARRELS_EXTENSIONS", "TS_BARRELS_EXCLUDE",
                "TS_BARRELS_JOBS", "TS_BARRELS_LOG_LEVEL", "TS_BARRELS_DEFAULT_PATH"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config() -> BarrelConfig:
    """Default configuration."""
    return BarrelConfig()


# =============================================================================
# Fixtures: sample modules and project trees
# =============================================================================

@pytest.fixture
def write_module():
    """Write a module (creating parent directories) and return its path."""
    def _write(path: Path, source: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def ts_source() -> str:
    """A module exercising the common export forms."""
    return (
        "import { helper } from './helper';\n"
        "\n"
        "export interface ButtonProps {\n"
        "  label: string;\n"
        "}\n"
        "\n"
        "export type Size = 'sm' | 'md' | 'lg';\n"
        "\n"
        "export const DEFAULT_SIZE: Size = 'md', MAX_WIDTH = 320;\n"
        "\n"
        "export function renderButton(props: ButtonProps): string {\n"
        "  return helper(props.label);\n"
        "}\n"
        "\n"
        "export class ButtonController {}\n"
        "\n"
        "export enum Variant {\n"
        "  Primary,\n"
        "  Secondary,\n"
        "}\n"
        "\n"
        "export default function Button(props: ButtonProps) {\n"
        "  return renderButton(props);\n"
        "}\n"
    )


@pytest.fixture
def tmp_project(tmp_path: Path, write_module) -> Path:
    """
    Three-level tree ``src/a/b`` with one module per level, plus files the
    scanner has to ignore.
    """
    root = tmp_path / "src"
    write_module(root / "root.ts", "export const rootValue = 1;\n")
    write_module(root / "a" / "alpha.ts", "export function alpha() {}\n")
    write_module(root / "a" / "b" / "beta.ts", "export class Beta {}\n")
    write_module(root / "a" / "b" / "beta.test.ts", "export const t = 1;\n")
    write_module(root / "node_modules" / "pkg" / "index.ts", "export const x = 1;\n")
    write_module(root / "README.md", "# docs\n")
    return root
