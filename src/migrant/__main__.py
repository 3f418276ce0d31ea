"""CLI entrypoint for running migrant as a module."""

from migrant.cli import cli

if __name__ == "__main__":
    cli()
