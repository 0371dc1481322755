"""Command line interface for running and managing flows."""

import asyncio
import json
import logging
import sys
from typing import Optional, Tuple

import click

from config.manager import EnvironmentManager
from flowkit.errors import FlowkitError, FlowNotFoundError
from flowkit.flow_loader import load_flow_document, merge_flow_examples
from flowkit.orchestrator import Orchestrator

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_pairs(pairs: Tuple[str, ...], option: str) -> dict:
    values = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint=option)
        key, value = pair.split("=", 1)
        values[key.strip()] = value
    return values


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level",
)
@click.option(
    "--set",
    "overrides",
    multiple=True,
    metavar="SETTING=VALUE",
    help="Override a setting, e.g. --set allow_external_commands=false",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str, overrides: Tuple[str, ...]) -> None:
    """FlowKit: run model-agnostic multi-step prompt workflows."""
    logging.basicConfig(level=log_level.upper(), format=LOG_FORMAT, stream=sys.stderr)

    env_manager = EnvironmentManager().load()
    for name, value in _parse_pairs(overrides, "--set").items():
        try:
            env_manager.update_setting(name, value)
        except (KeyError, ValueError) as e:
            raise click.BadParameter(str(e), param_hint="--set")
    ctx.obj = env_manager.to_settings()


@cli.command("run")
@click.argument("flow_name")
@click.option("--model", "target_model", default=None, help="Target model identifier")
@click.option("--context", "context_file_path", default=None, help="File injected as {{context}}")
@click.option("--var", "variables", multiple=True, metavar="KEY=VALUE", help="Template variable")
@click.option("--flow-file", default=None, help="Flow document to read")
@click.pass_obj
def run_flow(
    settings,
    flow_name: str,
    target_model: Optional[str],
    context_file_path: Optional[str],
    variables: Tuple[str, ...],
    flow_file: Optional[str],
) -> None:
    """Run FLOW_NAME and print the result as JSON."""
    orchestrator = Orchestrator(settings)
    try:
        result = asyncio.run(
            orchestrator.run(
                flow_name,
                target_model=target_model,
                context_file_path=context_file_path,
                variables=_parse_pairs(variables, "--var"),
                flow_path=flow_file,
            )
        )
    except FlowNotFoundError as e:
        click.echo(json.dumps({"error": str(e)}), err=True)
        sys.exit(2)

    click.echo(json.dumps(result.to_dict(), indent=2))
    if not result.success:
        sys.exit(1)


@cli.command("list-flows")
@click.option("--flow-file", default=None, help="Flow document to read")
@click.pass_obj
def list_flows(settings, flow_file: Optional[str]) -> None:
    """List the flows defined in the flow document."""
    document = load_flow_document(flow_file or settings.flow_file_path)
    if not document.flows:
        click.echo("No flows found.")
        return
    for flow in document.flows:
        description = f" - {flow.description}" if flow.description else ""
        click.echo(f"{flow.name} ({len(flow.steps)} steps){description}")


@cli.command("merge-examples")
@click.option("--examples-dir", default="flow-examples", help="Directory of example flow files")
@click.option("--output", default=None, help="Flow document to write")
@click.pass_obj
def merge_examples(settings, examples_dir: str, output: Optional[str]) -> None:
    """Merge example flow files into a single flow document."""
    target = output or settings.flow_file_path
    try:
        count = merge_flow_examples(examples_dir, target)
    except FlowkitError as e:
        raise click.ClickException(str(e))
    click.echo(f"Merged {count} flow(s) into {target}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
