# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Main CLI entry point for Agent Memories.
"""

import asyncio
import sys

import click

try:
    from .. import __version__
except (ImportError, AttributeError):
    __version__ = "0.0.0.dev0"

from .. import config
from ..services.context import create_memory_context
from ..services.index_sync import ResyncAccepted
from ..storage.factory import create_blob_store


@click.group()
@click.version_option(version=__version__, prog_name="Agent Memories")
@click.pass_context
def cli(ctx):
    """
    Agent Memories - memory storage and semantic retrieval for AI coding assistants.

    Serves a REST API and MCP tools over the same store and search index.
    """
    ctx.ensure_object(dict)


@cli.command()
@click.option('--host', default=None, help='Bind address (defaults to HTTP_HOST)')
@click.option('--port', default=None, type=int, help='Bind port (defaults to HTTP_PORT)')
@click.option('--debug', is_flag=True, help='Enable debug logging')
def serve(host, port, debug):
    """
    Start the HTTP server: REST API plus the MCP endpoint at /mcp.
    """
    from ..logging_config import configure_logging

    configure_logging(transport="http", level="DEBUG" if debug else None)

    host = host or config.HTTP_HOST
    port = port or config.HTTP_PORT

    for problem in config.validate_config():
        click.echo(f"Warning: {problem}", err=True)

    click.echo(f"REST API at: http://{host}:{port}/memories")
    click.echo(f"MCP endpoint at: http://{host}:{port}/mcp/")
    click.echo(f"API docs at: http://{host}:{port}/api/docs")

    try:
        import uvicorn
        from ..web.app import app

        uvicorn.run(app, host=host, port=port, log_level="debug" if debug else "info")
    except Exception as e:
        click.echo(f"Error starting HTTP server: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--transport', '-t', default='stdio',
              type=click.Choice(['stdio', 'streamable-http']), help='MCP transport')
@click.option('--host', default=None, help='Bind address for streamable-http (defaults to HTTP_HOST)')
@click.option('--port', default=None, type=int, help='Bind port for streamable-http (defaults to HTTP_PORT)')
def mcp(transport, host, port):
    """
    Start the standalone MCP server.
    """
    from ..mcp_server import main as mcp_main

    mcp_main(transport=transport, host=host or config.HTTP_HOST, port=port or config.HTTP_PORT)


@cli.command()
def resync():
    """
    Ask the search index to rebuild over all stored memories.

    Exits with status 1 when the provider rejects the request.
    """

    async def run_resync():
        context = await create_memory_context()
        try:
            return await context.sync.trigger_resync("manual")
        finally:
            await context.close()

    try:
        outcome = asyncio.run(run_resync())
    except Exception as e:
        click.echo(f"Error requesting resync: {e}", err=True)
        sys.exit(1)

    if isinstance(outcome, ResyncAccepted):
        click.echo(f"Resync accepted (job {outcome.job_id})")
    else:
        click.echo(f"Resync rejected: {outcome.reason}", err=True)
        sys.exit(1)


@cli.command()
def status():
    """
    Show storage backend statistics and configuration problems.
    """

    async def show_status():
        blobs = create_blob_store()
        await blobs.initialize()
        try:
            return blobs.__class__.__name__, await blobs.get_stats()
        finally:
            await blobs.close()

    click.echo("Agent Memories Status\n")
    click.echo(f"   Version: {__version__}")
    click.echo(f"   Backend: {config.STORAGE_BACKEND}")

    try:
        backend_name, stats = asyncio.run(show_status())
    except Exception as e:
        click.echo(f"Error connecting to storage: {e}", err=True)
        sys.exit(1)

    click.echo(f"   Store: {backend_name}")
    for key, value in sorted(stats.items()):
        click.echo(f"   {key}: {value}")

    problems = config.validate_config()
    if problems:
        click.echo("\nConfiguration problems:")
        for problem in problems:
            click.echo(f"   - {problem}")
    else:
        click.echo("\nConfiguration OK")


if __name__ == "__main__":
    cli()
