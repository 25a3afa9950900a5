"""`sqb` command line.

Commands stay thin: they build the adapters from `AppSettings`, call a
pipeline from `core.services.pipeline` and print the result with Rich.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

import typer
from rich.console import Console

from adapters.catalog_loader import load_catalog
from adapters.horizon import HorizonClient
from adapters.json_exporter import export_json
from adapters.stellar_keys import StellarMessageVerifier, is_valid_account_id
from cli import doctor
from cli.ui_components import (
    build_badges_table,
    build_claim_table,
    build_verification_panel,
    print_banner,
    summary_text,
)
from core.config import AppSettings
from core.domain.errors import (
    CatalogError,
    LedgerError,
    ProofError,
    QuestBadgeError,
)
from core.domain.models import BadgeDefinition, SignedEnvelope
from core.encoding import envelope
from core.encoding import proof as proof_codec
from core.logging_config import configure_logging
from core.services.ownership import OwnershipResolver
from core.services.pipeline import (
    PipelineHooks,
    check_account,
    create_proof,
    verify_envelope,
)

T = TypeVar("T")

app = typer.Typer(no_args_is_help=True, help="Stellar Quest badge ownership and proofs.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
logger = logging.getLogger(__name__)


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
    log_json: bool = typer.Option(False, "--log-json", help="Emit logs as JSON lines."),
) -> None:
    configure_logging(log_level or AppSettings().log_level, json_output=log_json)


def _fail(message: str) -> typer.Exit:
    _console.print(f"[bold red]Error:[/bold red] {message}")
    return typer.Exit(code=1)


def _error_message(exc: QuestBadgeError) -> str:
    if isinstance(exc, (LedgerError, ProofError)):
        return exc.user_message()
    return str(exc)


def _run(make: Callable[[PipelineHooks], Awaitable[T]]) -> T:
    """Run a pipeline with a spinner fed by its stage hooks."""

    with _console.status("Working...") as status:
        hooks = PipelineHooks(stage=lambda stage: status.update(stage.describe()))
        try:
            return asyncio.run(make(hooks))
        except QuestBadgeError as exc:
            logger.debug("pipeline failed", exc_info=True)
            raise _fail(_error_message(exc)) from exc


def _require_account_id(account: str) -> None:
    if not is_valid_account_id(account):
        raise _fail("Invalid ed25519 public key!")


def _services(settings: AppSettings) -> tuple[Callable[[], Awaitable[list[BadgeDefinition]]], OwnershipResolver]:
    async def catalog_source() -> list[BadgeDefinition]:
        return await load_catalog(settings)

    resolver = OwnershipResolver(
        HorizonClient(settings),
        max_concurrency=settings.claimable_search_max_concurrency,
    )
    return catalog_source, resolver


@app.command()
def badges(
    account: str = typer.Argument(..., help="Account id (G...)."),
    json_path: Path | None = typer.Option(None, "--json", help="Also write the records to this JSON file."),
) -> None:
    """Show which quest badges ACCOUNT holds."""

    _require_account_id(account)
    settings = AppSettings()
    catalog_source, resolver = _services(settings)

    result = _run(
        lambda hooks: check_account(
            account, catalog_source=catalog_source, resolver=resolver, hooks=hooks
        )
    )

    print_banner(_console)
    _console.print(summary_text(account, result.summary))
    _console.print(build_badges_table(result.records))
    if json_path:
        export_json(payload=result.records, output_path=json_path)
        _console.print(f"[green]Saved records to:[/green] {json_path}")


@app.command()
def prove(
    account: str = typer.Argument(..., help="Account id (G...)."),
    message: str = typer.Option("", "--message", "-m", help="Text embedded in the proof (no '.')."),
) -> None:
    """Print the proof string for ACCOUNT's badges, ready to be signed."""

    _require_account_id(account)
    settings = AppSettings()
    catalog_source, resolver = _services(settings)

    draft = _run(
        lambda hooks: create_proof(
            account,
            catalog_source=catalog_source,
            resolver=resolver,
            unique_id=message or None,
            hooks=hooks,
        )
    )

    _console.print(build_claim_table(draft.proof))
    _console.print("[dim]Sign this message with your wallet, then build an envelope with `sqb wrap`.[/dim]")
    typer.echo(draft.encoded)


@app.command()
def decode(
    proof: str = typer.Argument(..., help="Plain proof string (v1....)."),
) -> None:
    """Decode a plain proof string against the badge catalog."""

    settings = AppSettings()
    try:
        catalog = asyncio.run(load_catalog(settings))
        claim = proof_codec.decode(proof, catalog)
    except (CatalogError, ProofError) as exc:
        raise _fail(_error_message(exc)) from exc

    _console.print(build_claim_table(claim))


@app.command()
def wrap(
    signature: str = typer.Option(..., "--signature", help="Hex signature returned by the wallet."),
    public_key: str = typer.Option(..., "--public-key", help="Signing account id."),
    message: str = typer.Option(..., "--message", help="The proof string that was signed."),
) -> None:
    """Build a transport envelope from a wallet signature."""

    typer.echo(
        envelope.wrap(
            SignedEnvelope(signature=signature, public_key=public_key, plain_message=message)
        )
    )


@app.command()
def verify(
    blob: str = typer.Argument(..., metavar="ENVELOPE", help="Base64 signed proof."),
    json_path: Path | None = typer.Option(None, "--json", help="Also write the report to this JSON file."),
) -> None:
    """Verify a signed proof against the signer's current badges."""

    settings = AppSettings()
    catalog_source, resolver = _services(settings)
    verifier = StellarMessageVerifier()

    report = _run(
        lambda hooks: verify_envelope(
            blob,
            catalog_source=catalog_source,
            resolver=resolver,
            verifier=verifier,
            hooks=hooks,
        )
    )

    _console.print(build_verification_panel(report))
    _console.print(build_badges_table(report.records, claimed=report.claim.codes))
    if json_path:
        export_json(payload=report, output_path=json_path)
        _console.print(f"[green]Saved report to:[/green] {json_path}")
    if not report.is_valid:
        raise typer.Exit(code=1)


def run() -> None:
    app()
