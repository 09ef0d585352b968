"""Main CLI entry point using Typer."""

import logging
import signal
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..arm.client import create_credential, create_resource_client
from ..arm.credentials import CredentialValidationError, get_current_identity
from ..arm.store import ArmResourceStore
from ..deletion.audit import AuditLog, AuditStorage
from ..deletion.confirmation import ConsoleConfirmationGate
from ..deletion.deleter import DeletionSettings, RetryingDeleter
from ..deletion.ledger import IdentifierBatch, InputFileError, ResultLedger, load_identifiers
from ..deletion.orchestrator import BatchAborted, BatchOrchestrator
from ..models.deletion_operation import DeletionOperation, OperationStatus
from ..models.deletion_record import DeletionStatus
from ..utils.logging import setup_logging
from .config import Config, ConfigError

logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="azdelete",
    help="Azure Bulk Delete - Auditable bulk deletion of Azure resources listed in a CSV file",
    add_completion=False,
)

# Create Rich console for output
console = Console()

STATUS_STYLES = {
    DeletionStatus.SUCCESS: "green",
    DeletionStatus.FAILED: "bold red",
    DeletionStatus.SKIPPED: "yellow",
}


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Optional[str] = typer.Option(
        None,
        "--config",
        help="Config file path (default: ~/.azdelete/config.yaml or $AZDELETE_CONFIG)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress progress output; show only errors and results"
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
):
    """Azure Bulk Delete - Auditable bulk deletion of Azure resources."""
    try:
        config = Config.load(config_file)
    except ConfigError as e:
        console.print(f"✗ Configuration error: {escape(str(e))}", style="bold red")
        raise typer.Exit(code=1)

    # Setup logging
    log_level = "ERROR" if quiet else ("DEBUG" if verbose else config.log_level)
    setup_logging(level=log_level, verbose=verbose)

    # Disable colors if requested
    if no_color:
        console.no_color = True

    ctx.obj = config
    ctx.meta["quiet"] = quiet


@app.command()
def version():
    """Show version information."""
    from .. import __version__

    console.print(f"azure-bulk-delete version {__version__}")
    console.print(f"Python {sys.version.split()[0]}")


@app.command("delete")
def delete(
    ctx: typer.Context,
    input_file: Path = typer.Argument(..., help="CSV file with a ResourceId column"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip all confirmation prompts"),
    what_if: bool = typer.Option(False, "--what-if", help="Show what would be deleted without deleting anything"),
    log_path: Optional[Path] = typer.Option(
        None, "--log-path", help="Audit log file (default: <log_dir>/azdelete-<timestamp>.log)"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Result CSV (default: <input>-results-<timestamp>.csv beside the input)"
    ),
    max_retries: Optional[int] = typer.Option(
        None, "--max-retries", min=1, max=10, help="Maximum delete attempts per resource (1-10)"
    ),
    subscription: Optional[str] = typer.Option(
        None, "--subscription", "-s", help="Subscription ID (default: config, $AZURE_SUBSCRIPTION_ID or first enabled)"
    ),
):
    """Delete every Azure resource listed in a CSV file.

    Each resource is looked up, confirmed, deleted, and verified as gone.
    Failed attempts are retried with exponential backoff. Every step is written
    to the audit log and a result CSV is produced at the end.

    Examples:
        # Preview what would be deleted
        azdelete delete resources.csv --what-if

        # Delete with per-resource confirmation
        azdelete delete resources.csv

        # Delete without prompts, up to 5 attempts per resource
        azdelete delete resources.csv --force --max-retries 5
    """
    config: Config = ctx.obj
    run_stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    # Quiet runs route audit lines through logging, which is capped at ERROR
    audit = AuditLog(
        log_path or Path(config.log_dir) / f"azdelete-{run_stamp}.log",
        console=None if ctx.meta.get("quiet") else console,
    )

    try:
        # Identity first: nothing is read until we know who we are
        credential = create_credential()
        try:
            identity = get_current_identity(subscription or config.subscription_id, credential)
        except CredentialValidationError as e:
            audit.error(str(e))
            console.print("  Sign in with 'az login' or configure a service principal", style="yellow")
            raise typer.Exit(code=1)

        audit.info(f"Subscription: {identity.subscription_name} ({identity.subscription_id})")

        try:
            batch = load_identifiers(input_file)
        except InputFileError as e:
            audit.error(str(e))
            raise typer.Exit(code=1)

        audit.info(f"Read {len(batch.valid) + len(batch.invalid)} identifier(s) from column '{batch.column}'")
        for raw in batch.invalid:
            audit.warn(f"Invalid resource ID skipped: '{raw}'")
        for resource_id in batch.valid:
            if resource_id.subscription_id.lower() != identity.subscription_id.lower():
                audit.warn(f"Resource is outside subscription {identity.subscription_id}: {resource_id}")

        _print_batch_summary(batch, what_if=what_if, force=force)

        if not batch.valid:
            audit.error("No valid resource IDs found in input file")
            raise typer.Exit(code=1)

        settings = DeletionSettings(
            max_retries=max_retries or config.max_retries,
            settle_seconds=config.settle_seconds,
            backoff_unit_seconds=config.backoff_unit_seconds,
            force=force,
            preview=what_if,
        )
        gate = ConsoleConfirmationGate(console, config.confirmation_token)
        store = ArmResourceStore(create_resource_client(identity.subscription_id, credential))
        cancel_event = threading.Event()
        deleter = RetryingDeleter(store, gate, audit, settings, cancel_event=cancel_event)
        orchestrator = BatchOrchestrator(deleter, gate, audit, settings)

        def request_cancel(signum, frame):
            console.print("\n⚠️  Interrupt received, stopping after the current step...", style="bold yellow")
            cancel_event.set()

        previous_handler = signal.signal(signal.SIGINT, request_cancel)
        try:
            operation = orchestrator.run(
                batch.valid,
                invalid_count=len(batch.invalid),
                subscription=identity,
                input_file=str(input_file),
            )
        except BatchAborted as e:
            logger.error("Run aborted", exc_info=e.__cause__)
            operation = e.operation
        finally:
            signal.signal(signal.SIGINT, previous_handler)

        if operation.status == OperationStatus.CANCELLED:
            console.print("Cancelled.")
        else:
            ledger_path = output or input_file.with_name(f"{input_file.stem}-results-{run_stamp}.csv")
            ResultLedger(operation.records).write_csv(ledger_path)
            _print_results(operation)
            console.print(f"\n✓ Results written to: [cyan]{escape(str(ledger_path))}[/cyan]")

        audit_file = AuditStorage(config.audit_dir).log_operation(operation)
        logger.debug(f"Audit record written to {audit_file}")
        if audit.log_path:
            console.print(f"  Audit log: [cyan]{escape(str(audit.log_path))}[/cyan]")

        raise typer.Exit(code=operation.exit_code)

    except typer.Exit:
        raise
    except Exception as e:
        audit.error(f"Unexpected error: {e}")
        logger.exception("Error in delete command")
        raise typer.Exit(code=1)


def _print_batch_summary(batch: IdentifierBatch, what_if: bool, force: bool) -> None:
    """Display validation results before the run starts."""
    mode = "WHAT-IF (no changes)" if what_if else ("FORCE (no prompts)" if force else "INTERACTIVE")
    lines = [
        f"Valid resource IDs:   [bold green]{len(batch.valid)}[/bold green]",
        f"Invalid resource IDs: [bold red]{len(batch.invalid)}[/bold red]",
        f"Mode:                 [bold]{mode}[/bold]",
    ]
    console.print(Panel("\n".join(lines), title="Deletion Plan", border_style="cyan"))


def _print_results(operation: DeletionOperation) -> None:
    """Display per-resource outcomes and the run summary."""
    table = Table(title="Deletion Results")
    table.add_column("Resource", style="cyan", overflow="fold")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Attempts", justify="right")
    table.add_column("Details")

    for record in operation.records:
        style = STATUS_STYLES[record.status]
        table.add_row(
            escape(record.resource_name or record.resource_id),
            escape(record.resource_type or ""),
            f"[{style}]{record.status.value}[/{style}]",
            str(record.attempts),
            escape(record.error_message or record.note or ""),
        )

    console.print(table)

    summary = operation.summary
    console.print(
        f"\n[bold]Summary:[/bold] {summary.succeeded_count} succeeded, "
        f"{summary.failed_count} failed, {summary.skipped_count} skipped, "
        f"{summary.invalid_count} invalid"
    )
    not_processed = summary.valid_count - summary.processed_count
    if operation.status == OperationStatus.INTERRUPTED:
        console.print(f"⚠️  Interrupted: {not_processed} resource(s) not processed", style="bold yellow")
    elif operation.status == OperationStatus.ABORTED:
        console.print(
            f"✗ Aborted by an unexpected error: {not_processed} resource(s) not processed", style="bold red"
        )


# ============================================================================
# History Commands
# ============================================================================

history_app = typer.Typer(help="Browse audit records of previous runs")


def _parse_date(value: Optional[str], option: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        console.print(f"✗ Invalid {option} date: {escape(value)}. Use YYYY-MM-DD", style="bold red")
        raise typer.Exit(code=1)


@history_app.command("list")
def history_list(
    ctx: typer.Context,
    since: Optional[str] = typer.Option(None, "--since", help="Only runs on or after this date (YYYY-MM-DD)"),
    until: Optional[str] = typer.Option(None, "--until", help="Only runs on or before this date (YYYY-MM-DD)"),
):
    """List previous deletion runs."""
    config: Config = ctx.obj
    since_dt = _parse_date(since, "--since")
    until_dt = _parse_date(until, "--until")
    if until_dt:
        until_dt = until_dt.replace(hour=23, minute=59, second=59)

    operations = AuditStorage(config.audit_dir).query_operations(since=since_dt, until=until_dt)
    if not operations:
        console.print("No deletion runs found.", style="yellow")
        return

    table = Table(title="Deletion Runs")
    table.add_column("Operation ID", style="cyan")
    table.add_column("Timestamp")
    table.add_column("Mode")
    table.add_column("Status")
    table.add_column("Succeeded", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="yellow")

    for data in operations:
        op = data["operation"]
        table.add_row(
            op["operation_id"],
            op["timestamp"],
            op["mode"],
            op["status"],
            str(op["succeeded_count"]),
            str(op["failed_count"]),
            str(op["skipped_count"]),
        )

    console.print(table)


@history_app.command("show")
def history_show(
    ctx: typer.Context,
    operation_id: str = typer.Argument(..., help="Operation ID to display"),
):
    """Show the audit record of one deletion run."""
    config: Config = ctx.obj
    data = AuditStorage(config.audit_dir).get_operation(operation_id)
    if data is None:
        console.print(f"✗ Operation '{escape(operation_id)}' not found", style="bold red")
        raise typer.Exit(code=1)

    op = data["operation"]
    console.print(f"\n📋 Operation: [bold]{op['operation_id']}[/bold]")
    console.print(f"   Timestamp:    {op['timestamp']}")
    console.print(f"   Subscription: {op.get('subscription_name')} ({op.get('subscription_id')})")
    console.print(f"   Input file:   {escape(str(op.get('input_file')))}")
    console.print(f"   Mode:         {op['mode']}{' (forced)' if op.get('forced') else ''}")
    console.print(f"   Status:       {op['status']}")
    console.print(
        f"   Results:      {op['succeeded_count']} succeeded, {op['failed_count']} failed, "
        f"{op['skipped_count']} skipped, {op['invalid_count']} invalid\n"
    )

    if data["records"]:
        table = Table()
        table.add_column("Resource ID", style="cyan", overflow="fold")
        table.add_column("Status")
        table.add_column("Attempts", justify="right")
        table.add_column("Details")
        for record in data["records"]:
            table.add_row(
                escape(record["resource_id"]),
                record["status"],
                str(record["attempts"]),
                escape(record.get("error_message") or record.get("note") or ""),
            )
        console.print(table)


app.add_typer(history_app, name="history")


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    cli_main()
