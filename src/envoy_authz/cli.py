"""envoy-authz CLI - Serve the authorization gate and check requests offline."""

import click
import logging
import sys

from rich.console import Console
from rich.panel import Panel

from . import __version__
from .config import AuthzConfig, LISTEN_PORT, ENV_USER, ENV_PASS
from .auth import (
    AuthorizationGate,
    NullRecorder,
    create_flask_authz_app,
    encode_basic_credentials,
)

console = Console()

logger = logging.getLogger('envoy_authz.cli')

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def configure_logging(level=logging.INFO):
    """Send request records and decisions to stderr."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


@click.group()
@click.version_option(version=__version__, prog_name="envoy-authz")
def main():
    """envoy-authz - Basic-auth check-point for proxy authorization callouts."""
    pass


@main.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--debug", is_flag=True, help="Log at DEBUG level")
def serve(host, debug):
    """Run the authorization server on port 8080."""
    configure_logging(logging.DEBUG if debug else logging.INFO)

    config = AuthzConfig.from_env()
    if not config.is_complete:
        console.print(f"[yellow]Warning:[/yellow] {ENV_USER} and {ENV_PASS} must both be set; "
                      "every authenticated request will be rejected")

    app = create_flask_authz_app(config)

    logger.info(f"authz listening on port {LISTEN_PORT}!")
    app.run(host=host, port=LISTEN_PORT, debug=False)


@main.command()
@click.argument("path")
@click.option("--user", "-u", default=None, help="Username to send")
@click.option("--password", "-p", default=None, help="Password to send")
@click.option("--header", "-H", "auth_header", default=None, help="Raw Authorization header value")
def check(path, user, password, auth_header):
    """Evaluate one request against the environment's credentials."""
    if auth_header and (user is not None or password is not None):
        raise click.UsageError("Use either --header or --user/--password, not both")

    headers = {}
    if auth_header:
        headers['Authorization'] = auth_header
    elif user is not None or password is not None:
        headers['Authorization'] = encode_basic_credentials(user or "", password or "")

    gate = AuthorizationGate(AuthzConfig.from_env(), recorder=NullRecorder())
    decision = gate.decide(path, headers)

    if decision.allowed:
        console.print(f"[green]✓[/green] {path}: {decision.status} {decision.name}")
    else:
        console.print(f"[red]✗[/red] {path}: {decision.status} {decision.name}")
    sys.exit(0 if decision.allowed else 1)


@main.command()
@click.argument("username")
@click.argument("password")
def header(username, password):
    """Print the Authorization header value for a credential pair."""
    click.echo(encode_basic_credentials(username, password))


@main.command()
def info():
    """Show the effective configuration."""
    config = AuthzConfig.from_env()
    user_state = "[green]set[/green]" if config.username is not None else "[red]unset[/red]"
    pass_state = "[green]set[/green]" if config.password is not None else "[red]unset[/red]"

    console.print(Panel(
        f"[bold cyan]envoy-authz {__version__}[/bold cyan]\n\n"
        f"Port: {LISTEN_PORT}\n"
        f"{ENV_USER}: {user_state}\n"
        f"{ENV_PASS}: {pass_state}",
        border_style="cyan"
    ))


if __name__ == "__main__":
    main()
