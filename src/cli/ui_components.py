"""CLI UI components (Rich). Tables and panels shared by `badges`, `decode` and `verify`."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import BadgeSummary, OwnershipRecord, Proof, VerificationReport
from core.services.pipeline import group_by_series

EXPLORER_TX_URL = "https://stellar.expert/explorer/public/tx/{}"


def print_banner(console: Console) -> None:
    title = Text("Stellar Quest Badges", style="bold cyan")
    subtitle = Text("Ownership • Proofs • Verification", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def format_timestamp(timestamp: int | None) -> str:
    if timestamp is None:
        return "-"
    try:
        moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        # Outside the platform's datetime range.
        return str(timestamp)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def summary_text(account_id: str, summary: BadgeSummary) -> Text:
    text = Text()
    text.append("Account ", style="bold")
    text.append(account_id, style="cyan")
    text.append(f"\nEarned {summary.owned}/{summary.total} Badges")
    return text


def build_badges_table(
    records: list[OwnershipRecord],
    *,
    claimed: set[str] | None = None,
) -> Table:
    """One row per badge, grouped by series.

    With `claimed`, badges claimed but not owned are flagged in red.
    """

    table = Table(title="Quest Badges")
    table.add_column("Series", style="cyan", no_wrap=True)
    table.add_column("Badge", style="white", no_wrap=True)
    table.add_column("Owned", style="green")
    table.add_column("Since", style="dim")
    table.add_column("Transaction", style="magenta")

    for series, group in group_by_series(records).items():
        for record in group:
            code = record.badge.code
            if record.badge.tag:
                code = f"{code} {record.badge.tag}"
            owned = "yes" if record.owned else "no"
            style = None
            if claimed is not None and record.badge.code in claimed and not record.owned:
                owned = "CLAIMED, NOT OWNED"
                style = "bold red"
            tx = EXPLORER_TX_URL.format(record.tx_hash) if record.tx_hash else ""
            table.add_row(series, code, owned, record.acquired_at or "", tx, style=style)
    return table


def build_claim_table(proof: Proof) -> Table:
    table = Table(title="Claimed Badges")
    table.add_column("Badge", style="cyan", no_wrap=True)
    table.add_column("Issuer", style="dim")
    for badge in sorted(proof.owned_badges, key=lambda b: b.code):
        table.add_row(badge.code, badge.issuer)
    table.caption = f"Signed {format_timestamp(proof.timestamp)}" + (
        f" with message `{proof.unique_id}`" if proof.unique_id else ""
    )
    return table


def build_verification_panel(report: VerificationReport) -> Panel:
    body = Text()
    body.append("Signer: ", style="bold")
    body.append(report.public_key + "\n")

    if not report.signature_valid:
        body.append("Invalid Proof! The given signature is invalid!\n", style="red")
    if report.claimed_count != report.completed_count:
        body.append(
            f"Invalid Proof! Claimed to have completed {report.claimed_count} quests "
            f"(account holds {report.completed_count}).\n",
            style="red",
        )
    for code in report.unbacked_claims:
        body.append(f"Claims {code} but the account does not hold it.\n", style="red")

    if report.is_valid:
        message = "This proof was signed"
        if report.claim.timestamp is not None:
            message += f" on `{format_timestamp(report.claim.timestamp)}`"
        if report.claim.unique_id is not None:
            message += f" with message `{report.claim.unique_id}`"
        body.append(message, style="green")

    title = Text("Valid proof" if report.is_valid else "Invalid proof", style="bold")
    return Panel(body, title=title, border_style="green" if report.is_valid else "red")
