"""UI Power CLI entry point."""

from typing import Optional

import typer

from power_router.capabilities import available_capabilities, load_capability_table
from power_router.config import (
    ConfigurationError,
    get_mcp_config_path,
    get_routing_config,
    get_steering_path,
    load_config,
)
from power_router.registry import RegistryError, load_registry
from power_router.router import build_router
from power_router.session import Session
from power_router.validation import collect_violations

from . import __version__
from .console import (
    console,
    create_table,
    print_error,
    print_info,
    print_panel,
    print_success,
    print_table,
    print_warning,
)

app = typer.Typer(
    name="ui-power",
    help="UI Development Power - steering module routing and release checks",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"ui-power version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to ui-power-config.yaml",
    ),
) -> None:
    """UI Development Power - steering module routing and release checks."""
    try:
        ctx.obj = load_config(config_path)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command(name="validate")
def validate_command(ctx: typer.Context) -> None:
    """Check the registry and capability table; exit 1 on any violation."""
    config = ctx.obj
    routing = get_routing_config(config)
    registry = load_registry(get_steering_path(config), routing["default_module"])
    table = load_capability_table(get_mcp_config_path(config))

    result = collect_violations(registry, table)
    if result.ok:
        print_success(
            f"All checks passed: {result.module_count} modules, "
            f"{result.capability_count} capabilities"
        )
        return

    for violation in result.violations:
        print_error(violation)
    print_warning(f"{len(result.violations)} violation(s) found")
    raise typer.Exit(1)


@app.command(name="route")
def route_command(
    ctx: typer.Context,
    message: str = typer.Argument(..., help="User message to route"),
    show_content: bool = typer.Option(
        False, "--content", help="Print the loaded module content"
    ),
) -> None:
    """Route one message and show which modules and capabilities it gets."""
    config = ctx.obj
    try:
        router = build_router(config)
    except RegistryError as e:
        for violation in e.violations:
            print_error(violation)
        raise typer.Exit(1)

    result = router.route(message, Session())

    table = create_table("Selected modules")
    table.add_column("Module")
    table.add_column("Score", justify="right")
    table.add_column("Matched keywords")
    for module in result["modules"]:
        keywords = ", ".join(module["matched_keywords"]) or "(default)"
        table.add_row(module["module_id"], str(module["score"]), keywords)
    print_table(table)

    if result["notice"]:
        print_warning(f"{result['notice']} ({', '.join(result['failed'])})")

    if show_content:
        for document in result["documents"]:
            print_panel(document["title"], document["content"])

    _print_capabilities(result["capabilities"])


@app.command(name="modules")
def modules_command(
    ctx: typer.Context,
    category: Optional[str] = typer.Option(None, "--category", help="Filter by category"),
) -> None:
    """List registered steering modules."""
    config = ctx.obj
    routing = get_routing_config(config)
    registry = load_registry(get_steering_path(config), routing["default_module"])

    table = create_table("Steering modules")
    table.add_column("Module")
    table.add_column("Category")
    table.add_column("Priority", justify="right")
    table.add_column("Keywords", justify="right")
    for module in registry:
        if category and module.category != category:
            continue
        name = f"{module.id} (default)" if module.id == registry.default_module_id else module.id
        table.add_row(name, module.category, str(module.priority), str(len(module.keywords)))
    print_table(table)


@app.command(name="capabilities")
def capabilities_command(ctx: typer.Context) -> None:
    """Show which MCP tool integrations are configured in this environment."""
    config = ctx.obj
    table = load_capability_table(get_mcp_config_path(config))
    statuses = available_capabilities(table)
    _print_capabilities([s.to_dict() for s in statuses])


def _print_capabilities(statuses: list) -> None:
    if not statuses:
        print_info("No MCP tool integrations declared")
        return
    for status in statuses:
        if status["available"]:
            print_success(f"{status['name']}: available")
        else:
            print_warning(f"{status['name']}: {status['reason']}")


if __name__ == "__main__":
    app()
