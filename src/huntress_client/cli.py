"""CLI for the Huntress API client.

Commands:
- request: Send an arbitrary API request and print the JSON body
- account: Show the authenticated account
- organizations: List organizations page by page
- show-config: Print the effective configuration (secret masked)
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any, Protocol

import typer
from rich import print as rprint
from rich import print_json
from rich.markup import escape

from .client import HuntressClient
from .config import ClientConfig
from .config_file import load_client_config_file
from .context import CallContext
from .exceptions import ConfigError, HuntressError
from .infrastructure.http import RequestOptions
from .pagination import Pagination
from .query import ListParams


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(self, *, config: ClientConfig, verbose: bool) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI."""

    client: HuntressClient


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: ClientConfig
    deps_builder: DependenciesBuilder
    timeout_seconds: float | None = None
    verbose: bool = False

    def build_dependencies(self, *, config: ClientConfig | None = None) -> CliDependencies:
        """Return dependencies using the configured builder."""
        return self.deps_builder(config=config or self.config, verbose=self.verbose)

    def call_context(self) -> CallContext:
        return CallContext(deadline_seconds=self.timeout_seconds)


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the huntress entry point.")


class KeyValueOptionError(typer.BadParameter):
    """Raised when a repeatable option is not in the expected key/value form."""

    def __init__(self, option: str, value: str, separator: str) -> None:
        super().__init__(f"{option} expects KEY{separator}VALUE, got {value!r}.")


class JsonDataError(typer.BadParameter):
    """Raised when --data is not valid JSON."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"--data must be valid JSON: {reason}")


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _split_pairs(values: list[str] | None, *, option: str, separator: str) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for value in values or []:
        key, sep, rest = value.partition(separator)
        if not sep or not key.strip():
            raise KeyValueOptionError(option, value, separator)
        pairs.append((key.strip(), rest.strip()))
    return pairs


def _parse_data(data: str | None) -> object:
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        raise JsonDataError(exc.msg) from exc


def _mask(secret: str) -> str:
    if not secret:
        return "(not set)"
    if len(secret) <= 4:
        return "****"
    return f"{'*' * (len(secret) - 4)}{secret[-4:]}"


def _print_pagination(pagination: Pagination) -> None:
    rprint(
        f"[dim]page {pagination.page}/{pagination.total_pages} "
        f"({pagination.per_page} per page, {pagination.total_items} total)[/dim]"
    )


def _run_with_client(state: CliContext, command: Callable[[HuntressClient], None]) -> None:
    """Run a command against a fresh client, turning client errors into exit code 1."""
    deps = state.build_dependencies()
    try:
        with deps.client as client:
            command(client)
    except HuntressError as exc:
        rprint(f"[red]✗ {type(exc).__name__}:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


def create_app(deps_builder: DependenciesBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Huntress API client: rate-limited, retried requests from the command line",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        config_path: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="TOML config file overriding environment values",
            ),
        ] = None,
        env_file: Annotated[
            Path | None,
            typer.Option(
                "--env-file",
                help="Path to a .env file (default: .env discovery)",
            ),
        ] = None,
        timeout: Annotated[
            float | None,
            typer.Option(
                "--timeout",
                "-t",
                help="Overall deadline in seconds for each command",
            ),
        ] = None,
        base_url: Annotated[
            str | None,
            typer.Option(
                "--base-url",
                help="API base URL (overrides env and config file)",
            ),
        ] = None,
        max_retries: Annotated[
            int | None,
            typer.Option(
                "--max-retries",
                min=0,
                help="Retries after the first attempt (overrides env and config file)",
            ),
        ] = None,
        verbose: Annotated[
            bool,
            typer.Option(
                "--verbose",
                "-v",
                help="Log each request and retry",
            ),
        ] = False,
    ) -> None:
        """Initialise CLI context."""
        try:
            config = ClientConfig.from_env(str(env_file) if env_file is not None else None)
            if config_path is not None:
                config = config.with_file_overrides(load_client_config_file(path=config_path))
            config = config.with_overrides(base_url=base_url, max_retries=max_retries)
        except ConfigError as exc:
            rprint(f"[red]✗ Configuration error:[/red] {escape(str(exc))}")
            raise typer.Exit(code=1) from exc
        ctx.obj = CliContext(
            config=config,
            deps_builder=deps_builder,
            timeout_seconds=timeout,
            verbose=verbose,
        )

    @app.command()
    def request(
        ctx: typer.Context,
        method: Annotated[str, typer.Argument(help="HTTP method, e.g. GET or POST")],
        path: Annotated[str, typer.Argument(help="API path relative to the base URL")],
        data: Annotated[
            str | None,
            typer.Option(
                "--data",
                "-d",
                help="JSON request body",
            ),
        ] = None,
        query: Annotated[
            list[str] | None,
            typer.Option(
                "--query",
                "-q",
                help="Query parameter as key=value (repeatable)",
            ),
        ] = None,
        header: Annotated[
            list[str] | None,
            typer.Option(
                "--header",
                "-H",
                help="Request header as Name:Value (repeatable)",
            ),
        ] = None,
    ) -> None:
        """Send one API request and print the response body."""
        state = _get_context(ctx)
        body = _parse_data(data)
        options = RequestOptions(
            headers=dict(_split_pairs(header, option="--header", separator=":")),
            query=_split_pairs(query, option="--query", separator="="),
        )

        def send(client: HuntressClient) -> None:
            response = client.requester.do(
                method.upper(),
                path,
                body=body,
                response_type=Any,
                options=options,
                ctx=state.call_context(),
            )
            rprint(f"[green]✓ {response.status_code}[/green] after {response.attempts} attempt(s)")
            if response.request_id:
                rprint(f"  Request ID: {response.request_id}")
            if response.data is not None:
                print_json(data=response.data)
            _print_pagination(response.pagination)

        _run_with_client(state, send)

    @app.command()
    def account(ctx: typer.Context) -> None:
        """Show the account the credentials belong to."""
        state = _get_context(ctx)

        def show(client: HuntressClient) -> None:
            print_json(data=client.account.get(ctx=state.call_context()))

        _run_with_client(state, show)

    @app.command()
    def organizations(
        ctx: typer.Context,
        page: Annotated[
            int,
            typer.Option(
                "--page",
                "-p",
                min=1,
                help="Page number to fetch",
            ),
        ] = 1,
        per_page: Annotated[
            int,
            typer.Option(
                "--per-page",
                min=1,
                help="Organizations per page",
            ),
        ] = 20,
    ) -> None:
        """List organizations."""
        state = _get_context(ctx)

        def show(client: HuntressClient) -> None:
            result = client.organizations.list(
                ListParams(page=page, per_page=per_page), ctx=state.call_context()
            )
            for organization in result.items:
                rprint(f"  {organization.get('id', '?')}: {organization.get('name', '')}")
            _print_pagination(result.pagination)

        _run_with_client(state, show)

    @app.command(name="show-config")
    def show_config(ctx: typer.Context) -> None:
        """Print the effective configuration with the API secret masked."""
        config = _get_context(ctx).config
        rprint("[bold]Effective configuration[/bold]")
        rprint(f"  api_key: {config.api_key or '(not set)'}")
        rprint(f"  api_secret: {_mask(config.api_secret)}")
        rprint(f"  base_url: {config.base_url}")
        rprint(f"  user_agent: {config.user_agent}")
        rprint(f"  timeout_seconds: {config.timeout_seconds}")
        rprint(f"  max_retries: {config.max_retries}")
        rprint(
            f"  retry_delay_seconds: {config.retry_base_delay_seconds}"
            f"..{config.retry_max_delay_seconds}"
        )
        rprint(f"  retry_statuses: {', '.join(str(s) for s in sorted(config.retry_statuses))}")
        rprint(f"  requests_per_minute: {config.requests_per_minute}")
        rprint(f"  rate_limit_burst: {config.rate_limit_burst}")
        rprint(f"  cache_ttl_seconds: {config.cache_ttl_seconds}")

    _ = (main, request, account, organizations, show_config)

    return app
