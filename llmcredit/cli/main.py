"""Main CLI entry point for LLM Credit."""

import logging
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from llmcredit import __version__, create_sdk
from llmcredit.config.settings import Settings
from llmcredit.core.pricing import UnknownModelError
from llmcredit.utils.helpers import (
    format_cost,
    format_credits,
    format_delta,
    format_tokens,
    get_delta_style,
)

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to YAML settings file"
)
@click.option(
    "--pricing-file",
    type=click.Path(exists=True),
    help="JSON/YAML pricing overrides merged onto the built-in defaults"
)
@click.pass_context
def cli(ctx, config, pricing_file):
    """LLM Credit - estimate and reconcile credits for LLM calls."""
    ctx.ensure_object(dict)

    settings = Settings.load_from_file(config) if config else Settings()
    if pricing_file:
        settings.pricing_file_path = pricing_file
    logging.basicConfig(level=settings.log_level.upper())

    try:
        ctx.obj["sdk"] = create_sdk(settings=settings)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"Error loading pricing config: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def models(ctx):
    """List configured models and their pricing."""
    sdk = ctx.obj["sdk"]
    config = sdk.get_config()

    table = Table(title="Configured Models", show_header=True, header_style="bold cyan")
    table.add_column("Model", style="green")
    table.add_column("Prompt ($/1K tokens)", justify="right", style="yellow")
    table.add_column("Completion ($/1K tokens)", justify="right", style="yellow")
    table.add_column("Features", style="dim")

    for name, pricing in config.models.items():
        table.add_row(
            name,
            format_cost(pricing.prompt_cost_per_1k),
            format_cost(pricing.completion_cost_per_1k),
            ", ".join(pricing.features) or "-",
        )

    console.print(table)
    console.print(
        f"Default margin: {config.default_margin}  |  "
        f"Credits per dollar: {format_credits(config.credit_per_dollar)}"
    )


@cli.command()
@click.argument("model")
@click.pass_context
def features(ctx, model):
    """List features and margins configured for MODEL."""
    sdk = ctx.obj["sdk"]
    try:
        names = sdk.get_available_features(model)
    except UnknownModelError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    config = sdk.get_config()
    table = Table(title=f"Features for {model}", show_header=True, header_style="bold cyan")
    table.add_column("Feature", style="green")
    table.add_column("Margin", justify="right", style="yellow")
    for name in names:
        table.add_row(name, str(config.models[model].features[name].margin))
    console.print(table)


@cli.command()
@click.option("--model", "-m", required=True, help="Model identifier (e.g. openai:gpt-4)")
@click.option("--feature", "-f", default="chat", help="Feature identifier (default: chat)")
@click.option("--prompt-tokens", "-p", type=click.IntRange(min=0), required=True)
@click.option("--completion-tokens", "-c", type=click.IntRange(min=0), required=True)
@click.pass_context
def estimate(ctx, model, feature, prompt_tokens, completion_tokens):
    """Estimate credits for a call before making it."""
    sdk = ctx.obj["sdk"]
    try:
        result = sdk.estimate_credits(model, feature, prompt_tokens, completion_tokens)
    except UnknownModelError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    console.print(Panel(
        f"[bold]{format_credits(result.estimated_credits)}[/bold] credits\n"
        f"[dim]{format_tokens(prompt_tokens)} prompt + "
        f"{format_tokens(completion_tokens)} completion tokens[/dim]",
        title=f"Estimate: {model} / {feature}",
        border_style="cyan",
    ))


@cli.command()
@click.option("--model", "-m", required=True, help="Model identifier (e.g. openai:gpt-4)")
@click.option("--feature", "-f", default="chat", help="Feature identifier (default: chat)")
@click.option("--prompt-tokens", "-p", type=click.IntRange(min=0), required=True,
              help="Estimated prompt tokens")
@click.option("--completion-tokens", "-c", type=click.IntRange(min=0), required=True,
              help="Estimated completion tokens")
@click.option("--actual-prompt-tokens", type=click.IntRange(min=0), required=True)
@click.option("--actual-completion-tokens", type=click.IntRange(min=0), required=True)
@click.pass_context
def reconcile(ctx, model, feature, prompt_tokens, completion_tokens,
              actual_prompt_tokens, actual_completion_tokens):
    """Compare an estimate with actual token usage."""
    sdk = ctx.obj["sdk"]
    try:
        record = sdk.reconcile(
            model, feature, prompt_tokens, completion_tokens,
            actual_prompt_tokens, actual_completion_tokens,
        )
    except UnknownModelError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    table = Table(title=f"Reconciliation: {model} / {feature}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Estimated credits", format_credits(record.estimated_credits))
    table.add_row("Actual tokens", format_tokens(record.actual_tokens_used))
    table.add_row("Actual cost", format_cost(record.actual_cost))
    style = get_delta_style(record.credit_delta)
    table.add_row("Credit delta", f"[{style}]{format_delta(record.credit_delta)}[/{style}]")
    table.add_row("Cost delta", format_delta(record.cost_delta))
    table.add_row("Margin delta", format_delta(record.margin_delta))
    console.print(table)


if __name__ == "__main__":
    cli()
