"""WorldPianos CLI: inspect moderation rules and try content against them."""

import json
import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from worldpianos import __version__
from worldpianos.config import Settings
from worldpianos.errors import RuleFileError

console = Console()


def _build_service(rules_file: str | None):
    from worldpianos.moderation.rule_store import RuleStore, load_rules
    from worldpianos.moderation.service import ModerationService

    if rules_file:
        return ModerationService(rule_store=RuleStore(load_rules(rules_file)))
    return ModerationService.from_settings(click.get_current_context().obj)


def _read_json(path: str) -> dict:
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"{path} is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} must contain a JSON object")
    return data


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Override WORLDPIANOS_LOG_LEVEL")
@click.pass_context
def main(ctx: click.Context, log_level: str | None):
    """WorldPianos content moderation tools.

    Rules come from WORLDPIANOS_RULES_FILE when set, otherwise the stock
    WorldPianos rule set is used.
    """
    settings = Settings.from_env()
    if log_level:
        settings.log_level = log_level.upper()
    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    ctx.obj = settings


# ── Rules ────────────────────────────────────────────────────────────


@main.group()
def rules():
    """Inspect and export moderation rules."""


@rules.command(name="list")
@click.option("--rules-file", "-r", default=None, help="YAML rule file to load")
def list_rules(rules_file: str | None):
    """List rules in evaluation order."""
    try:
        service = _build_service(rules_file)
    except RuleFileError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1)

    entries = sorted(service.get_moderation_rules(), key=lambda r: r.priority)
    if not entries:
        console.print("[yellow]No moderation rules configured.[/]")
        return

    table = Table(title=f"Moderation Rules ({len(entries)})")
    table.add_column("Priority", justify="right", style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Applies to")
    table.add_column("Action", style="green")
    table.add_column("Conditions", justify="right")
    table.add_column("Enabled", justify="center")

    for rule in entries:
        enabled = "[green]Y[/]" if rule.enabled else "[red]N[/]"
        table.add_row(
            str(rule.priority),
            rule.id,
            rule.content_type.value,
            rule.action.value,
            str(len(rule.conditions)),
            enabled,
        )

    console.print(table)


@rules.command(name="export")
@click.argument("output_path")
@click.option("--rules-file", "-r", default=None, help="YAML rule file to load")
def export_rules(output_path: str, rules_file: str | None):
    """Write the active rule set to a YAML file."""
    from worldpianos.moderation.rule_store import dump_rules

    try:
        service = _build_service(rules_file)
    except RuleFileError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1)

    dump_rules(service.get_moderation_rules(), output_path)
    console.print(f"[green]Rules written to:[/] {output_path}")


# ── Evaluate ─────────────────────────────────────────────────────────


@main.command()
@click.argument("content_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--type",
    "content_type",
    required=True,
    type=click.Choice(["piano", "event", "blog_post"]),
    help="Kind of content being submitted",
)
@click.option("--author", "author_path", default=None, type=click.Path(exists=True, dir_okay=False))
@click.option("--rules-file", "-r", default=None, help="YAML rule file to load")
def evaluate(content_path: str, content_type: str, author_path: str | None, rules_file: str | None):
    """Run a JSON content submission through the moderation rules.

    CONTENT_PATH is a JSON file holding the piano, event or blog post.
    """
    try:
        service = _build_service(rules_file)
    except RuleFileError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1)

    content = _read_json(content_path)
    author = _read_json(author_path) if author_path else {}

    decision = service.process_content(content, content_type, author)

    colour = {
        "auto_approved": "green",
        "approved": "green",
        "rejected": "red",
        "pending": "yellow",
    }[decision.status.value]
    body = (
        f"Status: [{colour}]{decision.status.value}[/]\n"
        f"Reason: {decision.reason}\n"
        f"Applied rules: {', '.join(decision.applied_rules) or 'none'}"
    )
    console.print(Panel(body, title="Moderation Decision"))


if __name__ == "__main__":
    main()
