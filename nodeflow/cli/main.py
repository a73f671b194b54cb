"""
CLI interface for Nodeflow Core
"""
import asyncio
import json
import logging
import sys
from pathlib import Path

import click
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from ..core.config import Config
from ..core.bootstrap import get_container
from ..core.execution.document import PipelineDocument
from ..core.execution.node_registry import NODE_REGISTRY, UnknownNodeTypeError
from ..core.execution.runner import ExecutionRegistry
from ..utils.logger import set_log_level

console = Console(force_terminal=True)

STATUS_STYLES = {
    'executed': 'green',
    'failed': 'bold red',
    'executing': 'yellow',
    'waiting': 'dim',
}


@click.group()
def cli():
    """Nodeflow Core - pipeline graph execution engine"""
    pass


@cli.command()
@click.option('--port', default=None, type=int, help='Port to run the API server on (default: NODEFLOW_PORT)')
@click.option('--host', default=None, help='Host to bind to (default: NODEFLOW_HOST)')
def serve(port, host):
    """Run the API server"""
    host = host or Config.API_HOST
    port = port or Config.API_PORT
    Config.API_PORT = port

    if not Config.validate():
        click.echo("❌ Configuration validation failed. Please check your environment variables.")
        sys.exit(1)

    from ..api.server import app

    click.echo("🚀 Starting Nodeflow Core API server...")
    click.echo(f"   Host: {host}")
    click.echo(f"   Port: {port}")
    click.echo(f"   Generation service: {Config.GENERATION_URL}")

    uvicorn.run(app, host=host, port=port)


@cli.command()
@click.argument('graph_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--node', 'node_ids', multiple=True, help='Node id to run (repeatable, default: the whole graph)')
@click.option('--generation-url', default=None, help='Override NODEFLOW_GENERATION_URL')
@click.option('--save', 'save_path', default=None, type=click.Path(dir_okay=False, path_type=Path),
              help='Write the graph, with results, to this file after the run')
@click.option('--verbose', is_flag=True, help='Log node transitions (DEBUG level)')
def run(graph_file, node_ids, generation_url, save_path, verbose):
    """Execute a graph file and print per-node status"""
    if verbose:
        set_log_level(logging.DEBUG)

    if not Config.validate():
        click.echo("❌ Configuration validation failed. Please check your environment variables.")
        sys.exit(1)

    try:
        graph = json.loads(graph_file.read_text())
        if not isinstance(graph, dict):
            raise ValueError("expected a JSON object with 'nodes' and 'connections'")
        document = PipelineDocument.from_graph(
            graph,
            document_id=graph.get('id') or graph_file.stem,
            container=get_container(generation_url=generation_url),
        )
    except (json.JSONDecodeError, UnknownNodeTypeError, ValueError, KeyError) as e:
        console.print(f"[bold red]✗[/bold red] Invalid graph file: {e}")
        sys.exit(1)

    starting_ids = list(node_ids) or document.terminal_node_ids()
    missing = [node_id for node_id in starting_ids if not document.has_node(node_id)]
    if missing:
        console.print(f"[bold red]✗[/bold red] Unknown node id(s): {', '.join(missing)}")
        sys.exit(1)

    registry = ExecutionRegistry()
    with console.status(f"[bold cyan]Running {graph_file.name}...[/bold cyan]"):
        run_id = asyncio.run(registry.start_execution(document, starting_ids))

    status = registry.get_status(document.document_id)
    table = Table(title=f"Run {run_id}", box=box.SIMPLE)
    table.add_column("Node")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Error")
    for node_id, entry in status['nodes'].items():
        node_type, _ = document.describe(node_id)
        style = STATUS_STYLES.get(entry['status'], '')
        table.add_row(node_id, node_type, f"[{style}]{entry['status']}[/{style}]", entry['error'] or '')
    console.print(table)

    failed = registry.get_failed_nodes(document)
    if failed:
        lines = "\n".join(f"[bold]{entry['label']}[/bold] ({entry['node_id']}): {entry['error']}" for entry in failed)
        console.print(Panel(lines, title="[bold red]Execution errors[/bold red]", border_style="red"))

    if save_path:
        save_path.write_text(json.dumps(document.to_graph(), indent=2))
        console.print(f"[dim]Saved graph to {save_path}[/dim]")

    if failed:
        sys.exit(1)


@cli.command()
def nodes():
    """List registered node types"""
    table = Table(box=box.SIMPLE)
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Category")
    for node_type, node_class in sorted(NODE_REGISTRY.items()):
        table.add_row(node_type, node_class.title, node_class.category)
    console.print(table)


@cli.command()
def config():
    """Show current configuration"""
    click.echo("Configuration:")
    click.echo(f"   API Host: {Config.API_HOST}")
    click.echo(f"   API Port: {Config.API_PORT}")
    click.echo(f"   Debug: {Config.DEBUG}")
    click.echo(f"   Generation URL: {Config.GENERATION_URL}")
    click.echo(f"   Generation Timeout: {Config.GENERATION_TIMEOUT}s")
    click.echo(f"   Generation API Key: {'Set' if Config.GENERATION_API_KEY else 'Not set'}")
    click.echo(f"   Default Model: {Config.DEFAULT_PROVIDER}/{Config.DEFAULT_MODEL}")


if __name__ == '__main__':
    cli()
