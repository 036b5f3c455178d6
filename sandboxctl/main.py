"""
sandboxctl — CLI entrypoint.

Usage:
    sandboxctl --help
    sandboxctl recipe validate demo-recipe.json
    sandboxctl recipe plan demo-recipe.json --target-org demo1
    sandboxctl recipe install demo-recipe.json --target-org demo1 --yes
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from sandboxctl import __version__
from sandboxctl.core.engine.context import CompileOptions, LogLevel
from sandboxctl.core.models.result import Result, ResultStatus
from sandboxctl.core.observability.logging_config import LoggingSettings, configure_logging

_STATUS_STYLE = {
    ResultStatus.SUCCESS: ("✅", "green"),
    ResultStatus.WARNING: ("⚠️ ", "yellow"),
    ResultStatus.FAILURE: ("❌", "red"),
    ResultStatus.ERROR: ("💥", "red"),
}


@click.group()
@click.version_option(version=__version__, prog_name="sandboxctl")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to sandboxctl.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """sandboxctl — provision demo orgs from recipes."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    configure_logging(LoggingSettings.from_cli(debug=debug, verbose=verbose, quiet=quiet))


# ── Shared options ──────────────────────────────────────────────


def compile_options(func):
    """Decorate a command with the options that feed CompileOptions."""
    options = [
        click.option("--target-org", "-t", default=None, help="Alias of the target org to install into."),
        click.option("--devhub", "-d", default=None, help="Dev hub alias used to create scratch orgs."),
        click.option("--skip-group", "skip_groups", multiple=True, help="Step group alias to skip (repeatable)."),
        click.option("--skip-action", "skip_actions", multiple=True, help="Action name to skip (repeatable)."),
        click.option(
            "--halt-on-error/--no-halt-on-error",
            default=None,
            help="Stop at the first error (default: recipe setting).",
        ),
        click.option(
            "--log-level",
            type=click.Choice([lvl.value for lvl in LogLevel]),
            default=None,
            help="Log level passed to the platform CLI.",
        ),
        click.option("--skip-org-refresh", is_flag=True, help="Do not delete and recreate a scratch org target."),
        click.option(
            "--custom",
            "custom_install",
            is_flag=True,
            help="Pick the step groups to install interactively. Without it the recipe's skipGroups apply.",
        ),
        click.option("--yes", "-y", "assume_yes", is_flag=True, help="Do not ask for confirmation."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_compile_options(
    target_org: str | None,
    devhub: str | None,
    skip_groups: tuple[str, ...],
    skip_actions: tuple[str, ...],
    halt_on_error: bool | None,
    log_level: str | None,
    skip_org_refresh: bool,
    custom_install: bool,
    assume_yes: bool,
) -> CompileOptions:
    return CompileOptions(
        target_org_alias=target_org,
        dev_hub_alias=devhub,
        skip_groups=list(skip_groups) or None,
        skip_actions=list(skip_actions) or None,
        halt_on_error=halt_on_error,
        log_level=LogLevel(log_level) if log_level else None,
        skip_org_refresh=skip_org_refresh,
        custom_install=custom_install,
        assume_yes=assume_yes,
    )


def _interactive_prompter(as_json: bool):
    """A terminal prompter, unless output is machine-readable or stdin is not a TTY."""
    if as_json or not sys.stdin.isatty():
        return None
    from sandboxctl.adapters.terminal.prompt import ClickPrompter

    return ClickPrompter()


def _print_result_tree(result: Result) -> None:
    for depth, node in result.walk():
        icon, color = _STATUS_STYLE.get(node.status, ("•", "white"))
        indent = "   " * (depth + 1)
        click.echo(f"{indent}{icon} {node.name} ", nl=False)
        click.secho(f"{node.status.value} ({node.duration_string})", fg=color)
        if node.status in (ResultStatus.FAILURE, ResultStatus.ERROR) and not node.children:
            message = node.error_message
            if message:
                click.echo(f"{indent}   {message}")
            cause = node.detail.get("cause")
            if cause and cause != message:
                click.echo(f"{indent}   cause: {cause}")


# ── Recipe commands ─────────────────────────────────────────────


@cli.group()
def recipe() -> None:
    """Recipe commands."""


@recipe.command("validate")
@click.argument("recipe_ref", required=False)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def recipe_validate(ctx: click.Context, recipe_ref: str | None, as_json: bool) -> None:
    """Validate a recipe file."""
    from sandboxctl.core.use_cases.validate import validate_recipe

    result = validate_recipe(recipe_ref, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)
        return

    if result.valid:
        assert result.recipe is not None  # guaranteed when valid
        click.secho("✅ Recipe is valid", fg="green", bold=True)
        click.echo(f"   Recipe: {result.recipe.name}")
        click.echo(f"   Type: {result.recipe.recipe_type}")
        click.echo(f"   Step groups: {len(result.recipe.document.recipe_step_groups)}")
        click.echo(f"   Target orgs: {len(result.recipe.document.options.target_orgs)}")
    else:
        click.secho("❌ Recipe errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


@recipe.command("plan")
@click.argument("recipe_ref", required=False)
@compile_options
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def recipe_plan(ctx: click.Context, recipe_ref: str | None, as_json: bool, **kwargs) -> None:
    """Compile a recipe and show the groups and steps it would run."""
    from sandboxctl.core.use_cases.plan import plan_recipe

    result = plan_recipe(
        recipe_ref,
        config_path=ctx.obj.get("config_path"),
        options=_build_compile_options(**kwargs),
        prompter=_interactive_prompter(as_json),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)
        return

    if result.error:
        if result.cancelled:
            click.secho(f"🛑 {result.error}", fg="yellow")
        else:
            click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.engine is not None and result.engine.context is not None
    target = result.engine.context.target_org
    click.secho(f"\n📋 Plan: {result.recipe.name}", fg="cyan", bold=True)
    click.echo(f"   Target org: {target.alias} ({'scratch' if target.is_scratch_org else 'persistent'})")
    click.echo(f"   Halt on error: {result.engine.context.halt_on_error}")
    click.echo()

    for group in result.groups:
        click.secho(f"   {group['name']}", fg="white", bold=True)
        for step in group["steps"]:
            click.echo(f"     • {step['name']}  → {step['action']}")

    click.echo()
    click.echo(f"   {len(result.groups)} group(s), {result.step_count} step(s)")
    click.echo()


@recipe.command("install")
@click.argument("recipe_ref", required=False)
@compile_options
@click.option("--dry-run", is_flag=True, help="Validate every step without running commands.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def recipe_install(
    ctx: click.Context,
    recipe_ref: str | None,
    dry_run: bool,
    as_json: bool,
    **kwargs,
) -> None:
    """Install a recipe into its target org."""
    from sandboxctl.core.engine.base import ExecutionOptions
    from sandboxctl.core.use_cases.install import install_recipe

    sink = None
    if not as_json and not ctx.obj.get("quiet"):
        from sandboxctl.adapters.terminal.progress import ClickProgressSink

        sink = ClickProgressSink(verbose=ctx.obj.get("verbose", False))

    result = install_recipe(
        recipe_ref,
        config_path=ctx.obj.get("config_path"),
        options=_build_compile_options(**kwargs),
        execution=ExecutionOptions(dry_run=dry_run),
        prompter=_interactive_prompter(as_json),
        sink=sink,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)
        return

    if result.cancelled:
        click.secho(f"🛑 {result.error}", fg="yellow")
        sys.exit(1)

    if result.result is None:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.echo()
    _print_result_tree(result.result)
    click.echo()

    icon, color = _STATUS_STYLE.get(result.status, ("•", "white"))
    label = "Dry run" if dry_run else "Installation"
    click.secho(f"{icon} {label} finished: {result.status.value}", fg=color, bold=True)
    if result.error:
        click.echo(f"   {result.error}")
    click.echo()

    if not result.ok:
        sys.exit(1)


if __name__ == "__main__":
    cli()
