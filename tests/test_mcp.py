"""
Tests for tsbarrels.mcp.server — only run when the [mcp] extra is installed.
"""

import pytest

pytest.importorskip("fastmcp")

from tsbarrels.core.config import BarrelConfig  # noqa: E402
from tsbarrels.mcp.server import create_server  # noqa: E402


class TestCreateServer:

    def test_server_is_named(self):
        server = create_server(BarrelConfig())
        assert server.name == "ts-barrels"
