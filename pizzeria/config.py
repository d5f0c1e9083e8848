"""Pizzeria configuration.

Loads settings from environment variables with sensible defaults. The
catalog path can also be given on the command line with ``--pizzas``.
"""

import argparse
from typing import Sequence

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Pizzeria settings."""

    pizzas_file: str = Field(
        default="./pizzas.json",
        description="Path of the pizza catalog (.json or line-oriented text)",
    )
    host: str = Field(
        default="0.0.0.0",
        description="Bind host for the HTTP cart page",
    )
    port: int = Field(
        default=8787,
        ge=0,
        le=65535,
        description="Bind port for the HTTP cart page",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pizzeria-mcp",
        description="Pizza ordering MCP server with a read-only HTTP cart page.",
    )
    parser.add_argument(
        "--pizzas",
        metavar="PATH",
        help="Pizza catalog file (overrides PIZZAS_FILE)",
    )
    return parser


def resolve_settings(argv: Sequence[str] | None = None) -> Settings:
    """Build settings from the environment, then apply command-line overrides.

    Args:
        argv: Command-line arguments, without the program name.

    Returns:
        Resolved settings.
    """
    args, _ = build_arg_parser().parse_known_args(argv)
    settings = Settings()
    if args.pizzas:
        settings = settings.model_copy(update={"pizzas_file": args.pizzas})
    return settings
