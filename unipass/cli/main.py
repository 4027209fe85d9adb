"""Operator CLI."""

from datetime import datetime

import typer
from rich.console import Console
from rich.table import Table

from config import get_settings

app = typer.Typer(
    name="unipass",
    help="UniPass card validation and offer eligibility",
    add_completion=False,
)

console = Console()


def parse_instant(raw: str | None) -> datetime:
    """ISO timestamp; naive values are read in the configured zone."""
    tz = get_settings().tz
    if not raw:
        return datetime.now(tz)
    try:
        parsed: datetime = datetime.fromisoformat(raw)
    except ValueError:
        raise typer.BadParameter(f"Invalid timestamp '{raw}'. Expected ISO 8601 (e.g., 2024-01-31T23:59:59)")
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=tz)


@app.command()
def init_db(
    force: bool = typer.Option(False, "--force", "-f", help="Drop and recreate tables"),
):
    """Initialize the database schema."""
    from db.connection import get_engine
    from db.models import Base
    from migrations.migrate import migrate

    settings = get_settings()
    with console.status("Initializing database..."):
        if force:
            Base.metadata.drop_all(get_engine())
            console.print("[yellow]Dropped existing tables[/yellow]")
        if settings.database._use_postgres() or force:
            Base.metadata.create_all(get_engine())
        else:
            migrate()
    console.print(f"[green]Database ready[/green] ({settings.database.db_info_for_logging()})")


@app.command()
def eligibility(
    member_id: str = typer.Argument(..., help="Member id (QR payload)"),
    partner_id: str = typer.Argument(..., help="Partner id"),
    at: str | None = typer.Option(None, "--at", help="Evaluate at this instant instead of now"),
):
    """Show which offers a member may redeem at a partner."""
    from db.connection import get_session
    from unipass.services.errors import InvalidOfferError, MemberNotFoundError, PartnerNotFoundError
    from unipass.services.validation_session import ValidationSession

    now: datetime = parse_instant(at)
    with get_session() as session:
        svc = ValidationSession(session, clock=lambda: now)
        try:
            statuses = svc.evaluate_member(partner_id, member_id)
        except (MemberNotFoundError, PartnerNotFoundError) as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        except InvalidOfferError as e:
            console.print(f"[red]Offer configuration error:[/red] {e}")
            raise typer.Exit(1)

    table = Table(title=f"Offers for {member_id} at {partner_id} ({now.isoformat()})")
    table.add_column("Offer")
    table.add_column("Limit")
    table.add_column("Used", justify="right")
    table.add_column("Last used")
    table.add_column("Status")
    for s in statuses:
        label: str = f"{s.title} [dim](benefit)[/dim]" if s.is_standard else s.title
        if s.available:
            state = "[green]available[/green]"
        elif s.available_from is not None:
            state = f"[red]{s.reason.value}[/red] until {s.available_from:%Y-%m-%d}"
        else:
            state = f"[red]{s.reason.value}[/red]"
        table.add_row(
            label,
            s.limit.value,
            str(s.usage_count),
            s.last_used_at.astimezone(now.tzinfo).strftime("%Y-%m-%d %H:%M") if s.last_used_at else "-",
            state,
        )
    console.print(table)


@app.command()
def history(
    partner_id: str = typer.Argument(..., help="Partner id"),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of entries"),
):
    """Show the latest redemptions registered at a partner."""
    from db.connection import get_session
    from unipass.services.event_log import EventLogService

    with get_session() as session:
        entries = EventLogService(session).history(partner_id, limit=limit)

    if not entries:
        console.print("[yellow]No redemptions registered[/yellow]")
        return

    table = Table(title=f"Redemptions at {partner_id}")
    table.add_column("When")
    table.add_column("Member")
    table.add_column("Offer")
    table.add_column("Operator")
    for e in entries:
        table.add_row(e["timestamp"], e["memberId"], e["offerTitle"] or e["offerId"], e["actorName"])
    console.print(table)


if __name__ == "__main__":
    app()
