"""Theme management commands for the cmsctl CLI.

Themes get the common document commands plus activation. At most one
theme is active at a time; switching is done only through
``themes activate``.
"""

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from ..app import handle_exceptions
from ..models import Category
from ..utils.repository_factory import get_repository_and_formatter
from .documents import create_category_app, print_document, short_revision

app = create_category_app(Category.THEME)
console = Console()


@app.command()
@handle_exceptions
def activate(
    ctx: typer.Context,
    theme_id: str = typer.Argument(..., help="ID of the theme to activate"),
) -> None:
    """Make a theme the only active theme.

    The current theme is deactivated first. If activation stops halfway no
    theme is active; running the same command again finishes it.

    Examples:
        # Activate a theme
        cmsctl themes activate midnight
    """
    if ctx.obj["dry_run"]:
        console.print(f"[yellow]DRY RUN: Would activate theme '{theme_id}'[/yellow]")
        return

    repository, _ = get_repository_and_formatter(ctx)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Activating theme '{theme_id}'...", total=None)
        theme = repository.activate_theme(theme_id, token=ctx.obj["token"])

    if ctx.obj["output_format"] in ["json", "yaml"]:
        ctx.obj["output_formatter"].render(theme.model_dump(mode="json"), format=ctx.obj["output_format"])
        return

    console.print(
        f"[green]Theme '{theme.id}' is active (revision {short_revision(theme.revision)})[/green]"
    )


@app.command()
@handle_exceptions
def active(
    ctx: typer.Context,
) -> None:
    """Show the currently active theme.

    Examples:
        # Show the active theme
        cmsctl themes active

        # Get as JSON
        cmsctl -o json themes active
    """
    repository, formatter = get_repository_and_formatter(ctx)
    theme = repository.get_active_theme(token=ctx.obj["token"])

    if theme is None:
        if ctx.obj["output_format"] in ["json", "yaml"]:
            formatter.render({"active_theme": None}, format=ctx.obj["output_format"])
        else:
            console.print("[yellow]No theme is active. Run 'cmsctl themes activate <id>'.[/yellow]")
        return

    print_document(ctx, theme)
