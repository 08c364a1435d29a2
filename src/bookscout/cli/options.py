# ABOUTME: Shared Click options for Bookscout CLI commands.
# ABOUTME: Provides reusable decorators for provider credentials and result limits.

import click

from bookscout.acquisition.config import API_KEY_ENV

api_key_option = click.option(
    "--api-key",
    "api_key",
    envvar=API_KEY_ENV,
    default=None,
    help=f"Google Books API key (default: ${API_KEY_ENV}). Without it only Open Library is used.",
)

limit_option = click.option(
    "-n",
    "--limit",
    type=click.IntRange(min=1),
    default=10,
    show_default=True,
    help="Maximum number of results.",
)
