"""Allow ``python -m tsbarrels TARGET [--all] [--force] [--name FILE]``."""

from tsbarrels.cli.main import cli

if __name__ == "__main__":
    cli(prog_name="ts-barrels")
