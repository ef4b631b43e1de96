# apollo/cli/__main__.py

"""
Apollo CLI

Usage: python -m apollo.cli [command] [options]

Loads a schema directory, validates it and evaluates Call/Event Results
against it.
"""

from pathlib import Path
from typing import List

import click
import msgspec

from apollo.core import ApolloError, ApolloLogger, ApolloSettings, RunOptions
from apollo.dsl import RuntimeEvaluator, Schema, load_schema
from apollo.clients import Web3FunctionProvider
from apollo.types import CallResult


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--config-dir', type=click.Path(file_okay=False, path_type=Path),
              help='Schema directory (default: $APOLLO_CONFIG_DIR or ~/.config/apollo)')
@click.pass_context
def cli(ctx, verbose, config_dir):
    """Apollo CLI - declarative on-chain query schemas"""
    ctx.ensure_object(dict)

    settings = ApolloSettings.from_env(config_dir=config_dir)
    ctx.obj['settings'] = settings
    ctx.obj['verbose'] = verbose

    log_level = "DEBUG" if verbose else settings.log_level
    ApolloLogger.reset()
    ApolloLogger.configure(
        log_dir=settings.log_dir,
        log_level=log_level,
        console_enabled=True,
        file_enabled=settings.log_dir is not None,
        structured_format=verbose,
    )


def _load(settings: ApolloSettings) -> Schema:
    try:
        return load_schema(settings.config_dir)
    except ApolloError as e:
        raise click.ClickException(f"Failed to load schema: {e}")


@cli.command('check')
@click.option('--realtime', is_flag=True, help='Validate for realtime mode')
@click.pass_context
def check(ctx, realtime):
    """Load and validate the schema, then list its queries"""
    settings = ctx.obj['settings']
    schema = _load(settings)

    try:
        schema.validate(RunOptions(realtime=realtime))
    except ApolloError as e:
        raise click.ClickException(f"Schema is invalid: {e}")

    mode = "realtime" if realtime else "historical"
    click.echo(f"✅ Schema valid ({mode}): {settings.schema_path}")
    for query in schema.queries:
        click.echo(f"   {query.name} [{query.chain}]")
        for contract in query.contracts:
            methods = ", ".join(m.name for m in contract.methods) or "-"
            events = ", ".join(e.name for e in contract.events) or "-"
            click.echo(f"     - {contract.address} methods: {methods} events: {events}")
        for event in query.events:
            click.echo(f"     - event {event.output_name}")


@cli.command('eval')
@click.argument('results_json', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def eval_results(ctx, results_json):
    """Evaluate a JSON list of Call/Event Results, one JSON line per kept output"""
    settings = ctx.obj['settings']
    schema = _load(settings)

    try:
        results = msgspec.json.decode(results_json.read_bytes(), type=List[CallResult])
    except msgspec.DecodeError as e:
        raise click.ClickException(f"Invalid results file: {e}")

    evaluator = RuntimeEvaluator(schema, Web3FunctionProvider(settings.rpc_urls))

    failed = 0
    for result in results:
        try:
            output = evaluator.evaluate(result)
        except ApolloError as e:
            failed += 1
            click.echo(f"❌ {result.query_name} block {result.block_number}: {e}", err=True)
            continue

        if output is None:
            continue
        line = {
            "query_name": result.query_name,
            "block_number": result.block_number,
            "output": {name: value.as_python() for name, value in output.items()},
        }
        click.echo(msgspec.json.encode(line).decode())

    if failed:
        raise click.ClickException(f"{failed} of {len(results)} results failed to evaluate")


if __name__ == '__main__':
    cli()
