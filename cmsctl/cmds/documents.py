"""Document commands shared by every content category.

Pages, layouts, themes, navigation menus and component schemas all
support the same list/get/create/update/delete commands; this module
builds one Typer app per category.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..app import handle_exceptions
from ..exceptions import ValidationFailedError
from ..models import Category, Document, DocumentSummary
from ..utils.repository_factory import get_repository_and_formatter

console = Console()


def category_label(category: Category) -> str:
    """Human-readable category name for messages."""
    return category.value.replace("-", " ")


def short_revision(revision: Optional[str]) -> str:
    return revision[:7] if revision else "—"


def load_body_file(path: Path) -> Dict[str, Any]:
    """Load a document body from a JSON or YAML file.

    Raises:
        ValidationFailedError: If the file cannot be read or is not an object
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ValidationFailedError(f"Cannot read {path}: {e}")

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            body = yaml.safe_load(text)
        else:
            body = json.loads(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ValidationFailedError(f"Cannot parse {path}: {e}", validation_errors=[str(e)])

    if not isinstance(body, dict):
        raise ValidationFailedError(
            f"{path} must contain a JSON object",
            validation_errors=[f"got {type(body).__name__}"],
        )
    return body


def summary_table(category: Category, summaries: List[DocumentSummary]) -> Table:
    """Table of listing rows; unreadable documents show their error."""
    table = Table(title=f"{category_label(category).title()}s")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Revision", style="dim")
    table.add_column("Updated", style="dim")
    table.add_column("Draft", style="yellow")
    if category is Category.THEME:
        table.add_column("Active", style="green")

    for summary in summaries:
        if summary.error:
            name = f"[red]Error: {escape(summary.error)}[/red]"
        else:
            name = escape(summary.name or "")

        row = [
            summary.id,
            name,
            short_revision(summary.revision),
            summary.updated_at or "—",
            "✓" if summary.has_draft else "",
        ]
        if category is Category.THEME:
            row.append("✓" if summary.is_active else "")
        table.add_row(*row)

    return table


def print_document(ctx: typer.Context, document: Document) -> None:
    """Show a document in the selected output format."""
    output_format = ctx.obj["output_format"]
    if output_format in ["json", "yaml"]:
        ctx.obj["output_formatter"].render(document.model_dump(mode="json"), format=output_format)
        return

    table = Table(title=f"{category_label(document.category).title()}: {document.id}")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="bold")

    table.add_row("ID", document.id)
    table.add_row("Revision", document.revision or "[dim]unpublished[/dim]")
    table.add_row("Created", document.created_at or "—")
    table.add_row("Updated", document.updated_at or "—")
    table.add_row("Draft", "✓ Yes" if document.has_draft else "No")
    if document.category is Category.THEME:
        table.add_row("Active", "✓ Yes" if document.is_active else "No")

    console.print(table)
    console.print_json(data=document.body)


def print_write_result(ctx: typer.Context, action: str, document: Document) -> None:
    if ctx.obj["output_format"] in ["json", "yaml"]:
        ctx.obj["output_formatter"].render(document.model_dump(mode="json"), format=ctx.obj["output_format"])
        return

    console.print(
        f"[green]{category_label(document.category).capitalize()} '{document.id}' {action} "
        f"(revision {short_revision(document.revision)})[/green]"
    )


def create_category_app(category: Category) -> typer.Typer:
    """Build the list/get/create/update/delete commands for one category."""
    app = typer.Typer()
    label = category_label(category)

    @app.command("list")
    @handle_exceptions
    def list_documents(ctx: typer.Context) -> None:
        """List documents with their revision and draft status.

        Documents that cannot be read are listed with the error.
        """
        repository, formatter = get_repository_and_formatter(ctx)
        summaries = repository.list(category, token=ctx.obj["token"])

        if ctx.obj["output_format"] in ["json", "yaml"]:
            formatter.render(
                [summary.model_dump(mode="json") for summary in summaries],
                format=ctx.obj["output_format"],
            )
            return

        if not summaries:
            console.print(f"[yellow]No {label}s found[/yellow]")
            return

        console.print(summary_table(category, summaries))

    @app.command("get")
    @handle_exceptions
    def get_document(
        ctx: typer.Context,
        doc_id: str = typer.Argument(..., help=f"{label.capitalize()} ID"),
        published: bool = typer.Option(False, "--published", help="Ignore any unpublished draft"),
    ) -> None:
        """Show a document, preferring an unpublished draft.

        The revision shown is always the published one; pass it to
        update or delete.
        """
        repository, _ = get_repository_and_formatter(ctx)
        document = repository.get(category, doc_id, token=ctx.obj["token"], use_draft=not published)
        print_document(ctx, document)

    @app.command("create")
    @handle_exceptions
    def create_document(
        ctx: typer.Context,
        file: Path = typer.Argument(..., help="JSON or YAML file with the document body"),
        doc_id: Optional[str] = typer.Option(None, "--id", help="Document ID (derived from the name if omitted)"),
        message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message"),
    ) -> None:
        """Create a document from a file.

        Without --id the ID is derived from the body's id, a page's slug,
        or the slugified title/name.
        """
        body = load_body_file(file)

        if ctx.obj["dry_run"]:
            console.print(f"[yellow]DRY RUN: Would create {label} from '{file}'[/yellow]")
            if doc_id:
                console.print(f"  ID: {doc_id}")
            return

        repository, _ = get_repository_and_formatter(ctx)
        document = repository.create(category, body, doc_id=doc_id, token=ctx.obj["token"], message=message)
        print_write_result(ctx, "created", document)

    @app.command("update")
    @handle_exceptions
    def update_document(
        ctx: typer.Context,
        doc_id: str = typer.Argument(..., help=f"{label.capitalize()} ID"),
        file: Path = typer.Argument(..., help="JSON or YAML file with the new body"),
        revision: str = typer.Option(..., "--revision", "-r", help="Revision from your last read"),
        message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message"),
    ) -> None:
        """Replace a document if it is still at --revision.

        If someone else changed it since, nothing is written: get it
        again, reapply your edit and retry with the new revision.
        """
        body = load_body_file(file)

        if ctx.obj["dry_run"]:
            console.print(f"[yellow]DRY RUN: Would update {label} '{doc_id}' at revision {revision}[/yellow]")
            return

        repository, _ = get_repository_and_formatter(ctx)
        document = repository.update(
            category, doc_id, body, revision, token=ctx.obj["token"], message=message
        )
        print_write_result(ctx, "updated", document)

    @app.command("delete")
    @handle_exceptions
    def delete_document(
        ctx: typer.Context,
        doc_id: str = typer.Argument(..., help=f"{label.capitalize()} ID"),
        revision: str = typer.Option(..., "--revision", "-r", help="Revision from your last read"),
        force: bool = typer.Option(False, "--force", help="Delete without confirmation"),
        message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message"),
    ) -> None:
        """Delete a document if it is still at --revision."""
        if ctx.obj["dry_run"]:
            console.print(f"[yellow]DRY RUN: Would delete {label} '{doc_id}' at revision {revision}[/yellow]")
            return

        if not force:
            confirm = typer.confirm(f"Are you sure you want to delete {label} '{doc_id}'?")
            if not confirm:
                console.print("[yellow]Delete cancelled[/yellow]")
                return

        repository, _ = get_repository_and_formatter(ctx)
        repository.remove(category, doc_id, revision, token=ctx.obj["token"], message=message)
        console.print(f"[green]{label.capitalize()} '{doc_id}' deleted successfully![/green]")

    return app
