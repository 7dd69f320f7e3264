"""Draft commands for the cmsctl CLI.

Drafts are unpublished edits kept next to the configuration. They are
shown in place of the published body by ``get`` and are cleared when
the document is published.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..app import handle_exceptions
from ..exceptions import NotFoundError, ValidationFailedError
from ..models import Category
from ..utils.repository_factory import get_draft_overlay, get_repository_and_formatter
from .documents import category_label, load_body_file, print_write_result

app = typer.Typer()
console = Console()


def format_draft_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


@app.command("list")
@handle_exceptions
def list_drafts(ctx: typer.Context) -> None:
    """List unpublished drafts, most recent first."""
    drafts = get_draft_overlay(ctx).list_drafts()
    formatter = ctx.obj["output_formatter"]

    if ctx.obj["output_format"] in ["json", "yaml"]:
        formatter.render([draft.model_dump(mode="json") for draft in drafts], format=ctx.obj["output_format"])
        return

    if not drafts:
        console.print("[yellow]No drafts[/yellow]")
        return

    table = Table(title="Drafts")
    table.add_column("Category", style="cyan")
    table.add_column("ID", style="bold")
    table.add_column("Saved", style="dim")

    for draft in drafts:
        table.add_row(draft.category.value, draft.id, format_draft_time(draft.timestamp))

    console.print(table)


@app.command("show")
@handle_exceptions
def show_draft(
    ctx: typer.Context,
    category: str = typer.Argument(..., help="Document category (e.g. page, theme)"),
    doc_id: str = typer.Argument(..., help="Document ID"),
) -> None:
    """Show a draft body."""
    resolved = Category.parse(category)
    body = get_draft_overlay(ctx).load_draft(resolved, doc_id)
    if body is None:
        raise NotFoundError(f"No draft for {category_label(resolved)} '{doc_id}'")

    if ctx.obj["output_format"] in ["json", "yaml"]:
        ctx.obj["output_formatter"].render(body, format=ctx.obj["output_format"])
    else:
        console.print_json(data=body)


@app.command("save")
@handle_exceptions
def save_draft(
    ctx: typer.Context,
    category: str = typer.Argument(..., help="Document category (e.g. page, theme)"),
    doc_id: str = typer.Argument(..., help="Document ID"),
    file: Path = typer.Argument(..., help="JSON or YAML file with the edited body"),
) -> None:
    """Save an edited body as a draft, replacing any previous draft."""
    resolved = Category.parse(category)
    body = load_body_file(file)

    if ctx.obj["dry_run"]:
        console.print(f"[yellow]DRY RUN: Would save draft for {category_label(resolved)} '{doc_id}'[/yellow]")
        return

    metadata = get_draft_overlay(ctx).save_draft(resolved, doc_id, body)
    console.print(f"[green]Draft saved for {category_label(resolved)} '{doc_id}' at {format_draft_time(metadata.timestamp)}[/green]")


@app.command("clear")
@handle_exceptions
def clear_drafts(
    ctx: typer.Context,
    category: Optional[str] = typer.Argument(None, help="Document category"),
    doc_id: Optional[str] = typer.Argument(None, help="Document ID"),
    all_drafts: bool = typer.Option(False, "--all", help="Discard every draft"),
) -> None:
    """Discard one draft, or all of them with --all."""
    overlay = get_draft_overlay(ctx)

    if all_drafts:
        if ctx.obj["dry_run"]:
            console.print("[yellow]DRY RUN: Would discard all drafts[/yellow]")
            return
        overlay.clear_all_drafts()
        console.print("[green]All drafts discarded[/green]")
        return

    if not (category and doc_id):
        raise ValidationFailedError("Give a category and ID, or use --all")

    resolved = Category.parse(category)
    if ctx.obj["dry_run"]:
        console.print(f"[yellow]DRY RUN: Would discard draft for {category_label(resolved)} '{doc_id}'[/yellow]")
        return

    overlay.clear_draft(resolved, doc_id)
    console.print(f"[green]Draft for {category_label(resolved)} '{doc_id}' discarded[/green]")


@app.command("publish")
@handle_exceptions
def publish_draft(
    ctx: typer.Context,
    category: str = typer.Argument(..., help="Document category (e.g. page, theme)"),
    doc_id: str = typer.Argument(..., help="Document ID"),
    revision: Optional[str] = typer.Option(
        None, "--revision", "-r", help="Published revision to update; omit to create a new document"
    ),
) -> None:
    """Publish a draft and clear it.

    With --revision the published document is updated; without it a new
    document is created under the draft's ID.
    """
    resolved = Category.parse(category)

    if ctx.obj["dry_run"]:
        action = f"update at revision {revision}" if revision else "create"
        console.print(f"[yellow]DRY RUN: Would publish draft for {category_label(resolved)} '{doc_id}' ({action})[/yellow]")
        return

    repository, _ = get_repository_and_formatter(ctx)
    document = repository.publish_draft(resolved, doc_id, revision=revision, token=ctx.obj["token"])
    print_write_result(ctx, "published", document)
