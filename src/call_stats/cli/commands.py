import json
import logging

import click

from call_stats.records.aggregator import Aggregator
from call_stats.records.recorder import Recorder
from call_stats.storage.dynamo import DEFAULT_TABLE_NAME, create_table, make_store
from call_stats.storage.errors import StorageUnavailable

logger = logging.getLogger(__name__)

_NO_DATA = "No statistics available"


@click.group()
@click.version_option(package_name="call-stats")
@click.option("--table", envvar="CALL_STATS_TABLE", default=DEFAULT_TABLE_NAME, show_default=True)
@click.option("--region", envvar="AWS_DEFAULT_REGION")
@click.pass_context
def cli(ctx, table, region):
    """Record endpoint calls and query call statistics."""
    ctx.obj = {"table": table, "region": region}


def _store(ctx):
    return make_store(table_name=ctx.obj["table"], region=ctx.obj["region"])


def _emit(payload, as_json: bool, text: str) -> None:
    click.echo(json.dumps(payload, indent=2) if as_json else text)


@cli.command()
@click.argument("endpoint")
@click.option("--json", "as_json", is_flag=True, help="Print the record as JSON")
@click.pass_context
def record(ctx, endpoint, as_json):
    """Record one call to ENDPOINT."""
    try:
        rec = Recorder(_store(ctx)).record(endpoint)
    except StorageUnavailable as e:
        raise click.ClickException(str(e))
    _emit(rec.to_dict(), as_json, f"Recorded {rec.endpoint!r} at {rec.recorded_at.isoformat()}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the record as JSON")
@click.pass_context
def latest(ctx, as_json):
    """Show the most recently recorded call."""
    try:
        rec = Aggregator(_store(ctx)).latest()
    except StorageUnavailable as e:
        raise click.ClickException(str(e))

    if rec is None:
        click.echo(_NO_DATA)
        return
    _emit(rec.to_dict(), as_json, f"{rec.endpoint}\t{rec.recorded_at.isoformat()}")


@cli.command("most-called")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def most_called(ctx, as_json):
    """Show the endpoint with the most recorded calls."""
    try:
        entry = Aggregator(_store(ctx)).most_called()
    except StorageUnavailable as e:
        raise click.ClickException(str(e))

    if entry is None:
        click.echo(_NO_DATA)
        return
    _emit(entry.to_dict(), as_json, f"{entry.endpoint}\t{entry.count}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the counts as JSON")
@click.pass_context
def counts(ctx, as_json):
    """Show the number of recorded calls per endpoint."""
    try:
        entries = Aggregator(_store(ctx)).endpoint_counts()
    except StorageUnavailable as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return
    if not entries:
        click.echo(_NO_DATA)
        return
    for entry in entries:
        click.echo(f"{entry.endpoint}\t{entry.count}")


@cli.command("create-table")
@click.pass_context
def create_table_cmd(ctx):
    """Create the DynamoDB table that holds call records."""
    try:
        create_table(table_name=ctx.obj["table"], region=ctx.obj["region"])
    except StorageUnavailable as e:
        raise click.ClickException(str(e))
    click.echo(f"Created table {ctx.obj['table']}")
