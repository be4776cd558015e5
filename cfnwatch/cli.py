"""Command line entrypoint for cfnwatch."""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

import click
import yaml

from .client import CloudFormationClient
from .config import EngineSettings
from .coordinator import OperationCoordinator
from .errors import CfnWatchError, OperationFailedError
from .events import EventTypes


@click.group()
@click.option('--region', default=None, help='AWS region (defaults to CFNWATCH_REGION or the AWS profile)')
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def main(ctx, region, output_json, verbose):
    """cfnwatch - drive CloudFormation stacks to a terminal state."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj['json'] = output_json
    try:
        settings = EngineSettings.from_env()
    except ValueError as e:
        _fail(output_json, str(e))
    ctx.obj['settings'] = settings
    ctx.obj['region'] = region or settings.region


def _json_output(data: Dict[str, Any]) -> None:
    """Output data as JSON."""
    click.echo(json.dumps(data, indent=None))


def _human_output(message: str) -> None:
    """Output human-readable message."""
    if not click.get_current_context().obj.get('json', False):
        click.echo(message)


def _fail(output_json: bool, message: str) -> None:
    """Report an engine or input error and exit with code 2."""
    if output_json:
        _json_output({'error': message})
    else:
        click.echo(f"❌ {message}")
    sys.exit(2)


def _progress(event_type: str, data: Dict[str, Any]) -> None:
    if event_type == EventTypes.STATUS_POLLED:
        _human_output(f"  {data['status']} (poll {data['attempt']})")
    elif event_type == EventTypes.OPERATION_SUBMITTED:
        _human_output(f"Submitted {data['operation']} of {data['stack_id']}")
    elif event_type == EventTypes.NO_CHANGES:
        _human_output("No updates are to be performed")
    elif event_type == EventTypes.ALREADY_DELETED:
        _human_output("Stack does not exist, nothing to delete")


def _load_definition(path: str) -> Dict[str, Any]:
    """Load a YAML or JSON mapping of CloudFormation request parameters."""
    try:
        with open(Path(path)) as f:
            definition = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise click.BadParameter(f"{path} is not valid YAML or JSON: {e}") from e
    if definition is None:
        return {}
    if not isinstance(definition, dict):
        raise click.BadParameter(f"{path} must contain a mapping of request parameters")
    return definition


def _coordinator(ctx) -> OperationCoordinator:
    transport = ctx.obj.get('transport') or CloudFormationClient(region=ctx.obj['region'])
    return OperationCoordinator(transport, settings=ctx.obj['settings'], event_callback=_progress)


def _run(ctx, operation) -> None:
    try:
        result = operation(_coordinator(ctx))
    except OperationFailedError as e:
        if ctx.obj['json']:
            _json_output({
                'final_status': e.status.value,
                'reasons': list(e.reasons),
                'stack_id': e.stack_id,
                'error': str(e),
            })
        else:
            _human_output(f"❌ {e}")
        sys.exit(1)
    except CfnWatchError as e:
        _fail(ctx.obj['json'], str(e))

    if ctx.obj['json']:
        _json_output(result.to_dict())
    else:
        _human_output(f"✅ {result.final_status.value}")
        if result.stack_id:
            _human_output(f"Stack ID: {result.stack_id}")


@main.command()
@click.argument('name')
@click.option('--definition', 'definition_path', required=True, type=click.Path(exists=True, dir_okay=False),
              help='YAML/JSON file with CreateStack parameters')
@click.pass_context
def create(ctx, name, definition_path):
    """Create a stack and wait for it."""
    definition = _load_definition(definition_path)
    _run(ctx, lambda c: c.create(name, definition))


@main.command()
@click.argument('stack_id')
@click.option('--definition', 'definition_path', required=True, type=click.Path(exists=True, dir_okay=False),
              help='YAML/JSON file with UpdateStack parameters')
@click.pass_context
def update(ctx, stack_id, definition_path):
    """Update a stack and wait for it."""
    definition = _load_definition(definition_path)
    _run(ctx, lambda c: c.update(stack_id, definition))


@main.command()
@click.argument('stack_id')
@click.pass_context
def delete(ctx, stack_id):
    """Delete a stack and wait until it is gone."""
    _run(ctx, lambda c: c.delete(stack_id))


@main.command()
@click.argument('stack_id')
@click.pass_context
def describe(ctx, stack_id):
    """Show a stack's status, outputs and parameters."""
    try:
        description = _coordinator(ctx).read(stack_id)
    except CfnWatchError as e:
        _fail(ctx.obj['json'], str(e))

    if description is None:
        _fail(ctx.obj['json'], f"Stack {stack_id} not found")

    if ctx.obj['json']:
        _json_output(description.to_dict())
        return

    _human_output(f"{description.name}: {description.status.value}")
    for key, value in sorted(description.outputs.items()):
        _human_output(f"  output {key} = {value}")
    for key, value in sorted(description.parameters.items()):
        _human_output(f"  param  {key} = {value}")


if __name__ == '__main__':
    main()
