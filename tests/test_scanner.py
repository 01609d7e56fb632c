"""
Tests for tsbarrels.core.scanner — directory listing and tree snapshots.
"""

import os

import pytest
from tsbarrels.core.config import BarrelConfig
from tsbarrels.core.scanner import (
    DirectoryNode,
    build_tree,
    is_excluded_file,
    list_directory,
    scan_directory,
)
from tsbarrels.exceptions import NotFoundError, ScanPermissionError


def _names(paths):
    return [p.name for p in paths]


# =============================================================================
# list_directory
# =============================================================================

class TestListDirectory:
    """Verify candidate module filtering for one directory."""

    def test_filters_and_sorts(self, tmp_path, write_module, config):
        write_module(tmp_path / "b.ts", "")
        write_module(tmp_path / "a.tsx", "")
        write_module(tmp_path / "c.js", "")
        write_module(tmp_path / "notes.md", "")
        modules, subdirs, has_barrel = list_directory(tmp_path, "index.ts", config)
        assert _names(modules) == ["a.tsx", "b.ts"]
        assert subdirs == []
        assert has_barrel is False

    def test_barrel_is_never_a_module(self, tmp_path, write_module, config):
        write_module(tmp_path / "index.ts", "export * from './a';\n")
        write_module(tmp_path / "a.ts", "export const a = 1;\n")
        modules, _, has_barrel = list_directory(tmp_path, "index.ts", config)
        assert _names(modules) == ["a.ts"]
        assert has_barrel is True

    def test_custom_barrel_name_keeps_index_as_module(self, tmp_path, write_module, config):
        write_module(tmp_path / "index.ts", "export const a = 1;\n")
        write_module(tmp_path / "barrel.ts", "")
        modules, _, has_barrel = list_directory(tmp_path, "barrel.ts", config)
        assert _names(modules) == ["index.ts"]
        assert has_barrel is True

    def test_exclude_patterns(self, tmp_path, write_module, config):
        for name in ("a.ts", "a.test.ts", "a.spec.tsx", "types.d.ts", "a.stories.tsx"):
            write_module(tmp_path / name, "")
        modules, _, _ = list_directory(tmp_path, "index.ts", config)
        assert _names(modules) == ["a.ts"]

    def test_hidden_and_excluded_dirs_skipped(self, tmp_path, write_module, config):
        write_module(tmp_path / ".hidden" / "x.ts", "")
        write_module(tmp_path / "node_modules" / "x.ts", "")
        write_module(tmp_path / "zeta" / "x.ts", "")
        write_module(tmp_path / "alpha" / "x.ts", "")
        write_module(tmp_path / ".eslintrc.ts", "")
        modules, subdirs, _ = list_directory(tmp_path, "index.ts", config)
        assert modules == []
        assert _names(subdirs) == ["alpha", "zeta"]

    def test_include_hidden(self, tmp_path, write_module):
        write_module(tmp_path / ".config.ts", "")
        cfg = BarrelConfig(include_hidden=True)
        modules, _, _ = list_directory(tmp_path, "index.ts", cfg)
        assert _names(modules) == [".config.ts"]

    def test_large_files_skipped(self, tmp_path, write_module):
        write_module(tmp_path / "big.ts", "x" * 2048)
        write_module(tmp_path / "small.ts", "")
        cfg = BarrelConfig(max_file_size_kb=1)
        modules, _, _ = list_directory(tmp_path, "index.ts", cfg)
        assert _names(modules) == ["small.ts"]

    def test_permission_error_wrapped(self, tmp_path, monkeypatch, config):
        def _deny(path):
            raise PermissionError(13, "Permission denied")
        monkeypatch.setattr(os, "scandir", _deny)
        with pytest.raises(ScanPermissionError, match="Cannot read directory"):
            list_directory(tmp_path, "index.ts", config)

    def test_is_excluded_file(self, config):
        assert is_excluded_file("button.test.tsx", config)
        assert not is_excluded_file("button.tsx", config)


# =============================================================================
# scan_directory / build_tree
# =============================================================================

class TestScanDirectory:

    def test_single_directory(self, tmp_project):
        node = scan_directory(tmp_project, "index.ts")
        assert _names(node.modules) == ["root.ts"]
        assert [c.path.name for c in node.children] == ["a"]
        assert node.children[0].modules == ()
        assert node.children[0].children == ()

    def test_missing_directory(self, tmp_path):
        with pytest.raises(NotFoundError):
            scan_directory(tmp_path / "missing", "index.ts")

    def test_file_is_not_a_directory(self, tmp_path, write_module):
        target = write_module(tmp_path / "a.ts", "")
        with pytest.raises(NotFoundError, match="not a directory"):
            scan_directory(target, "index.ts")

    def test_not_found_is_file_not_found_error(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            build_tree(tmp_path / "missing", "index.ts")


class TestBuildTree:
    """Verify recursive snapshots."""

    def test_tree_shape_and_depths(self, tmp_project):
        tree = build_tree(tmp_project, "index.ts")
        assert tree.path == tmp_project.resolve()
        assert [(n.path.name, n.depth) for n in tree.walk()] == [
            ("src", 0), ("a", 1), ("b", 2),
        ]

    def test_post_order_is_leaf_to_root(self, tmp_project):
        tree = build_tree(tmp_project, "index.ts")
        assert [n.path.name for n in tree.walk_post_order()] == ["b", "a", "src"]

    def test_test_files_not_in_tree(self, tmp_project):
        tree = build_tree(tmp_project, "index.ts")
        leaf = tree.children[0].children[0]
        assert _names(leaf.modules) == ["beta.ts"]

    def test_unreadable_child_recorded(self, tmp_project, monkeypatch):
        real_scandir = os.scandir

        def _scandir(path):
            if os.path.basename(str(path)) == "b":
                raise PermissionError(13, "Permission denied")
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", _scandir)
        tree = build_tree(tmp_project, "index.ts")
        leaf = tree.children[0].children[0]
        assert isinstance(leaf.error, ScanPermissionError)
        assert leaf.is_empty

    def test_unreadable_root_raises(self, tmp_project, monkeypatch):
        def _deny(path):
            raise PermissionError(13, "Permission denied")
        monkeypatch.setattr(os, "scandir", _deny)
        with pytest.raises(ScanPermissionError):
            build_tree(tmp_project, "index.ts")

    def test_empty_node(self, tmp_path):
        assert DirectoryNode(path=tmp_path).is_empty
