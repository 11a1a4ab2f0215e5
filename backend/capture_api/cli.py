"""
Command-line entry point for the pooled screenshot server
"""

import click
import uvicorn

from .config import settings


@click.command()
@click.option("--host", default=settings.HOST, show_default=True, help="Interface to bind")
@click.option("--port", "-p", type=int, default=settings.PORT, show_default=True,
              help="Port to run the server on (PORT env var)")
def main(host: str, port: int):
    """Run the screenshot service.

    \b
    Environment variables:
      SCREENSHOT_AUTH_TOKEN      Bearer token for authentication (optional)
      SCREENSHOT_HOST_WHITELIST  Comma-separated list of allowed hostnames (optional)
      MAX_CONCURRENCY            Maximum concurrent screenshots (default: 10)
      DEBUG                      Set to "true" for verbose logging
    """
    click.echo(f"Screenshot service starting on {host}:{port}")
    uvicorn.run("capture_api.main:app", host=host, port=port)


if __name__ == "__main__":
    main()
