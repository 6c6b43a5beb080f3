"""CLI entry point for did-ledger.

Invoked as::

    did-ledger [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m did_ledger.cli.main

Commands
--------
init-ledger   Write the seed DID records
create        Create or overwrite a DID record under a key
get           Show the DID record stored under a key
find          Find the first DID record with a given DID
list          List every DID record in the scan range
invoke        Run a transaction by its function name
"""
from __future__ import annotations

import json
import logging
import sys
from typing import NoReturn

import click
from rich.console import Console
from rich.table import Table

from did_ledger.config import LedgerSettings
from did_ledger.contract import DidContract, TransactionContext
from did_ledger.errors import LedgerError
from did_ledger.record.model import DidRecord

console = Console()

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


class _Session:
    """Contract and transaction context shared by the commands of one run.

    The state store is opened on first use, so commands that never touch
    it are unaffected by an unreadable state file.
    """

    def __init__(self, settings: LedgerSettings) -> None:
        self.settings = settings
        self.contract = DidContract.from_settings(settings)
        self._ctx: TransactionContext | None = None

    @property
    def ctx(self) -> TransactionContext:
        if self._ctx is None:
            self._ctx = TransactionContext(store=self.settings.open_store())
        return self._ctx


pass_session = click.make_pass_decorator(_Session)


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="did-ledger", prog_name="did-ledger")
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="NDJSON file holding the world state (in-memory when omitted).",
)
@click.option(
    "--audit-log",
    type=click.Path(dir_okay=False),
    default=None,
    help="JSONL file receiving one audit event per write.",
)
@click.option(
    "--corrupt-policy",
    type=click.Choice(["raise", "skip"]),
    default=None,
    help="How scans treat undecodable records.",
)
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    state_file: str | None,
    audit_log: str | None,
    corrupt_policy: str | None,
    log_level: str,
) -> None:
    """DID document records over a key-value world state.

    Options not given on the command line fall back to the DID_LEDGER_*
    environment variables.
    """
    logging.basicConfig(level=getattr(logging, log_level.upper()))

    overrides: dict[str, object] = {}
    if state_file is not None:
        overrides["state_file"] = state_file
    if audit_log is not None:
        overrides["audit_log"] = audit_log
    if corrupt_policy is not None:
        overrides["corrupt_policy"] = corrupt_policy

    try:
        base = LedgerSettings.from_env()
        settings = LedgerSettings.model_validate({**base.model_dump(), **overrides})
        ctx.obj = _Session(settings)
    except (LedgerError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from did_ledger import __version__

    console.print(f"[bold]did-ledger[/bold] v{__version__}")


# ------------------------------------------------------------------
# init-ledger
# ------------------------------------------------------------------


@cli.command(name="init-ledger")
@pass_session
def init_ledger_command(session: _Session) -> None:
    """Write the seed DID records under DID0, DID1, ..."""
    try:
        session.contract.init_ledger(session.ctx)
    except LedgerError as exc:
        _fail(exc)
    keys = session.contract.seed_keys()
    console.print(f"[green]Seeded[/green] {len(keys)} DID record(s): {', '.join(keys)}")


# ------------------------------------------------------------------
# create
# ------------------------------------------------------------------


@cli.command(name="create")
@click.argument("key")
@click.option("--id", "did_id", default="", help="The document's DID.")
@click.option("--authentication-id", default="", help="Authentication key identifier.")
@click.option("--authentication-type", default="", help="Authentication key type.")
@click.option("--authentication-controller", default="", help="Controller of the key.")
@click.option(
    "--authentication-public-key-perm", default="", help="PEM-encoded public key."
)
@click.option("--service-id", default="", help="Service identifier.")
@click.option("--service-type", default="", help="Service type.")
@click.option("--service-end-point", default="", help="Service URL.")
@pass_session
def create_command(
    session: _Session,
    key: str,
    did_id: str,
    authentication_id: str,
    authentication_type: str,
    authentication_controller: str,
    authentication_public_key_perm: str,
    service_id: str,
    service_type: str,
    service_end_point: str,
) -> None:
    """Create or overwrite the DID record stored under KEY."""
    try:
        session.contract.create_did(
            session.ctx,
            key,
            did_id,
            authentication_id,
            authentication_type,
            authentication_controller,
            authentication_public_key_perm,
            service_id,
            service_type,
            service_end_point,
        )
    except LedgerError as exc:
        _fail(exc)
    console.print(f"[green]Stored[/green] DID [bold]{did_id or '(empty)'}[/bold] under {key}")


# ------------------------------------------------------------------
# get / find
# ------------------------------------------------------------------


@cli.command(name="get")
@click.argument("key")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print raw JSON.")
@pass_session
def get_command(session: _Session, key: str, as_json: bool) -> None:
    """Show the DID record stored under KEY."""
    try:
        record = session.contract.query_did_by_key(session.ctx, key)
    except LedgerError as exc:
        _fail(exc)
    _print_record(record, title=f"DID record — {key}", as_json=as_json)


@cli.command(name="find")
@click.argument("did_id")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print raw JSON.")
@pass_session
def find_command(session: _Session, did_id: str, as_json: bool) -> None:
    """Find the first DID record whose id is DID_ID."""
    try:
        record = session.contract.query_did_by_id(session.ctx, did_id)
    except LedgerError as exc:
        _fail(exc)
    _print_record(record, title="DID record", as_json=as_json)


# ------------------------------------------------------------------
# list
# ------------------------------------------------------------------


@cli.command(name="list")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print raw JSON.")
@pass_session
def list_command(session: _Session, as_json: bool) -> None:
    """List every DID record in the scan range."""
    try:
        results = session.contract.query_all_dids(session.ctx)
    except LedgerError as exc:
        _fail(exc)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2))
        return

    if not results:
        console.print("[yellow]No DID records found.[/yellow]")
        return

    table = Table(title="DID Records", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("DID")
    table.add_column("Auth Type")
    table.add_column("Service Endpoint")

    for result in results:
        table.add_row(
            result.key,
            result.record.id,
            result.record.authentication_type,
            result.record.service_end_point,
        )

    console.print(table)
    console.print(f"\nTotal: {len(results)} record(s)")


# ------------------------------------------------------------------
# invoke
# ------------------------------------------------------------------


@cli.command(name="invoke")
@click.argument("function")
@click.argument("args", nargs=-1)
@pass_session
def invoke_command(session: _Session, function: str, args: tuple[str, ...]) -> None:
    """Run the transaction FUNCTION with string ARGS and print its JSON result."""
    try:
        result = session.contract.invoke(session.ctx, function, list(args))
    except LedgerError as exc:
        _fail(exc)
    if result is not None:
        click.echo(json.dumps(result, indent=2))


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _print_record(record: DidRecord, title: str, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(record.to_dict(), indent=2))
        return

    table = Table(title=title, show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for name, value in record.to_dict().items():
        table.add_row(name, value.strip() or "(empty)")
    console.print(table)


def _fail(exc: LedgerError) -> NoReturn:
    console.print(f"[red]Error:[/red] {exc}")
    sys.exit(1)


if __name__ == "__main__":
    cli()
