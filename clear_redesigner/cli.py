"""
Command-Line Interface

Rich terminal front end for the redesign session: progress spinners
driven by the session's busy signals, a formatted critique, and the
generated mockup written to disk. Entry point for users and scripts.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__, rubric
from .config import load_config
from .errors import ClearRedesignerError
from .models import CUSTOM_MODEL, KNOWN_MODELS, CritiqueReport, ImagePayload, SessionSnapshot
from .parser import parse_critique
from .session import RedesignSession


console = Console()

STATUS_STYLES = {
    rubric.STATUS_PASS: "green",
    rubric.STATUS_NEEDS_IMPROVEMENT: "yellow",
    rubric.STATUS_CRITICAL: "red",
    rubric.STATUS_UNKNOWN: "dim",
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def model_options(func):
    """Options shared by every command that calls a model."""
    options = [
        click.option(
            '--model',
            'model_id',
            default=None,
            type=click.Choice(list(KNOWN_MODELS) + [CUSTOM_MODEL]),
            help='Model to use. Defaults to CLEAR_MODEL_ID from .env'
        ),
        click.option(
            '--custom-model',
            default=None,
            help='Custom model id (e.g. gemini-2.0-flash-exp or gpt-4o); implies --model custom'
        ),
        click.option(
            '--api-key',
            default=None,
            help='API key. Defaults to GEMINI_API_KEY or OPENAI_API_KEY depending on the model'
        ),
        click.option(
            '--format',
            'output_format',
            default='rich',
            type=click.Choice(['rich', 'json'], case_sensitive=False),
            help='Output format: rich (colored terminal) or json (for scripts)'
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option(
    '--env-file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Path to .env file (defaults to ./.env)'
)
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, env_file: Optional[str], verbose: bool):
    """
    Clear Redesigner - critique a UI screenshot and generate a redesign

    Round 1 critiques the screenshot against the C.L.E.A.R. framework.
    Round 2 turns that critique into a self-contained HTML mockup.

    Examples:

      # Critique and redesign (uses .env config)
      clear-redesigner analyze screenshot.png -o redesign.html

      # Different model
      clear-redesigner analyze screenshot.png --model gpt-5.1

      # Tweak the mockup
      clear-redesigner refine --mockup redesign.html --request "Make the CTA green"

      # Re-audit the original and regenerate
      clear-redesigner iterate screenshot.png --mockup redesign.html
    """
    _setup_logging(verbose)
    try:
        ctx.obj = load_config(Path(env_file) if env_file else None)
    except ValidationError as e:
        message = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        console.print(f"[red]❌ Error: invalid configuration: {escape(message)}[/red]")
        sys.exit(1)


@main.command()
@click.argument('image', type=click.Path(dir_okay=False))
@click.option('--context', 'user_context', default='', help='Extra context about the product or audience')
@click.option('--output', '-o', default='redesign.html', type=click.Path(dir_okay=False), help='Where to write the HTML mockup')
@click.option('--critique-out', default=None, type=click.Path(dir_okay=False), help='Also save the raw critique here')
@model_options
@click.pass_obj
def analyze(config, image, user_context, output, critique_out, model_id, custom_model, api_key, output_format):
    """Critique IMAGE, then generate a redesigned HTML mockup."""
    selection = _selection(config, model_id, custom_model, api_key)
    payload = _read_image(image)
    session = RedesignSession(timeout=config.request_timeout)

    snapshot = _run(
        session,
        lambda: session.run_full_cycle(selection, payload, user_context),
        output_format,
    )
    _finish(snapshot, None, output, critique_out, selection.effective_model_id, output_format)


@main.command()
@click.argument('image', type=click.Path(dir_okay=False))
@click.option('--mockup', required=True, type=click.Path(exists=True, dir_okay=False), help='Current mockup HTML')
@click.option('--context', 'user_context', default='', help='Extra context about the product or audience')
@click.option('--output', '-o', default=None, type=click.Path(dir_okay=False), help='Where to write the new mockup (defaults to --mockup)')
@click.option('--critique-out', default=None, type=click.Path(dir_okay=False), help='Also save the raw critique here')
@model_options
@click.pass_obj
def iterate(config, image, mockup, user_context, output, critique_out, model_id, custom_model, api_key, output_format):
    """Re-critique the original IMAGE and regenerate the mockup from scratch."""
    selection = _selection(config, model_id, custom_model, api_key)
    payload = _read_image(image)
    current = Path(mockup).read_text(encoding="utf-8")
    session = RedesignSession(timeout=config.request_timeout)
    session.load(mockup=current)

    snapshot = _run(
        session,
        lambda: session.iterate(selection, payload, current, user_context),
        output_format,
    )
    _finish(snapshot, current, output or mockup, critique_out, selection.effective_model_id, output_format)


@main.command()
@click.option('--critique', 'critique_file', required=True, type=click.Path(exists=True, dir_okay=False), help='Saved critique to generate from')
@click.option('--context', 'user_context', default='', help='Extra context about the product or audience')
@click.option('--output', '-o', default='redesign.html', type=click.Path(dir_okay=False), help='Where to write the HTML mockup')
@model_options
@click.pass_obj
def retry(config, critique_file, user_context, output, model_id, custom_model, api_key, output_format):
    """Re-run code generation from a saved critique."""
    selection = _selection(config, model_id, custom_model, api_key)
    session = RedesignSession(timeout=config.request_timeout)
    session.load(critique_text=Path(critique_file).read_text(encoding="utf-8"))

    snapshot = _run(
        session,
        lambda: session.retry_code_generation(selection, user_context),
        output_format,
    )
    _finish(snapshot, None, output, None, selection.effective_model_id, output_format)


@main.command()
@click.option('--mockup', required=True, type=click.Path(exists=True, dir_okay=False), help='Current mockup HTML')
@click.option('--request', 'request_text', required=True, help='What to change, in plain words')
@click.option('--output', '-o', default=None, type=click.Path(dir_okay=False), help='Where to write the refined mockup (defaults to --mockup)')
@model_options
@click.pass_obj
def refine(config, mockup, request_text, output, model_id, custom_model, api_key, output_format):
    """Apply one free-text change request to a mockup."""
    if not request_text.strip():
        console.print("[yellow]⚠️  Empty request, nothing to refine[/yellow]")
        return

    selection = _selection(config, model_id, custom_model, api_key)
    current = Path(mockup).read_text(encoding="utf-8")
    session = RedesignSession(timeout=config.request_timeout)
    session.load(mockup=current)

    snapshot = _run(
        session,
        lambda: session.refine(selection, request_text),
        output_format,
    )
    _finish(snapshot, current, output or mockup, None, selection.effective_model_id, output_format)


@main.command()
@click.argument('critique_file', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--format',
    'output_format',
    default='rich',
    type=click.Choice(['rich', 'json'], case_sensitive=False),
    help='Output format: rich (colored terminal) or json (for scripts)'
)
def show(critique_file, output_format):
    """Parse and display a saved critique without calling any model."""
    text = Path(critique_file).read_text(encoding="utf-8")
    report = parse_critique(text)
    if output_format == 'json':
        print(json.dumps(_report_json(report), indent=2))
    else:
        _output_report(report)


def _selection(config, model_id, custom_model, api_key):
    try:
        return config.selection(model_id, custom_model, api_key)
    except ValidationError as e:
        message = "; ".join(err["msg"] for err in e.errors())
        console.print(f"[red]❌ Invalid model selection: {escape(message)}[/red]")
        sys.exit(1)


def _read_image(path: str) -> ImagePayload:
    try:
        return ImagePayload.from_path(Path(path))
    except ClearRedesignerError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        sys.exit(1)


def _run(session: RedesignSession, operation, output_format: str) -> SessionSnapshot:
    """Run one session operation behind a spinner that follows busy signals."""

    async def runner() -> SessionSnapshot:
        if output_format == 'json':
            return await operation()

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task("[cyan]Starting...", total=None)

            def on_change(snap: SessionSnapshot) -> None:
                if snap.is_round1_running:
                    progress.update(task, description="[cyan]Analyzing C.L.E.A.R. metrics...")
                elif snap.is_round2_running:
                    progress.update(task, description="[cyan]Generating redesign...")
                elif snap.is_refining:
                    progress.update(task, description="[cyan]Refining redesign...")

            unsubscribe = session.subscribe(on_change)
            try:
                return await operation()
            finally:
                unsubscribe()

    try:
        return asyncio.run(runner())
    except ClearRedesignerError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Interrupted by user[/yellow]")
        sys.exit(130)


def _finish(
    snapshot: SessionSnapshot,
    previous_mockup: Optional[str],
    output: Optional[str],
    critique_out: Optional[str],
    model_name: str,
    output_format: str
):
    """Write results to disk, print them, and exit non-zero on any error."""
    mockup_path = None
    if snapshot.mockup and snapshot.mockup != previous_mockup and output:
        Path(output).write_text(snapshot.mockup, encoding="utf-8")
        mockup_path = output

    if critique_out and snapshot.critique_text:
        Path(critique_out).write_text(snapshot.critique_text, encoding="utf-8")

    if output_format == 'json':
        _output_json(snapshot, mockup_path)
    else:
        console.print()
        console.print(Panel.fit(
            f"[bold]C.L.E.A.R. Redesign[/bold]\n"
            f"Model: {model_name}",
            border_style="cyan"
        ))
        if snapshot.report is not None:
            _output_report(snapshot.report)
        if mockup_path:
            console.print(f"\n[green]✓ Mockup written to {mockup_path}[/green]")
        if snapshot.error:
            console.print(f"\n[red]❌ {escape(snapshot.error)}[/red]")
        console.print()

    if snapshot.error:
        sys.exit(1)


def _output_report(report: CritiqueReport):
    """Output a parsed critique in rich formatted terminal output"""

    if not report.is_structured:
        for block in report.blocks:
            if block.kind == "heading":
                console.print(f"\n[bold]{escape(block.text)}[/bold]")
            elif block.kind == "bullet":
                console.print(f"  • {escape(block.text)}")
            else:
                console.print(escape(block.text))
        if report.overall_score is not None:
            console.print(f"\n[bold]Overall Score: {report.overall_score}%[/bold]")
        return

    console.print("\n[bold]📊 Scores[/bold]")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Module", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Status", justify="center")

    for module in report.modules:
        style = STATUS_STYLES.get(module.status, "white")
        score = f"{module.sub_score}/{rubric.MAX_SUB_SCORE}" if module.sub_score is not None else "-"
        table.add_row(
            f"{module.letter} - {module.display_name}",
            score,
            f"[{style}]{module.status}[/]"
        )

    overall = f"{report.overall_score}/100" if report.overall_score is not None else "-"
    table.add_row("[bold]Overall[/bold]", f"[bold]{overall}[/bold]", "")
    console.print(table)

    for module in report.modules:
        style = STATUS_STYLES.get(module.status, "white")
        console.print(f"\n[bold {style}]{module.letter} - {module.display_name}[/bold {style}]")
        for bullet in module.bullet_lines:
            if bullet.label:
                console.print(f"  • [bold]{escape(bullet.label)}:[/bold] {escape(bullet.text)}")
            else:
                console.print(f"  • {escape(bullet.text)}")
        for note in module.notes:
            console.print(f"  [dim]{escape(note)}[/dim]")
        if module.redesign_suggestion:
            console.print(f"  💡 {escape(module.redesign_suggestion)}")


def _report_json(report: Optional[CritiqueReport]) -> dict:
    if report is None:
        return {"overall_score": None, "modules": [], "blocks": []}
    return {
        "overall_score": report.overall_score,
        "modules": [
            {**module.model_dump(), "status": module.status}
            for module in report.modules
        ],
        "blocks": [block.model_dump() for block in report.blocks],
    }


def _output_json(snapshot: SessionSnapshot, mockup_path: Optional[str]):
    """Output result as JSON for scripts"""
    output = {
        **_report_json(snapshot.report),
        "critique": snapshot.critique_text,
        "mockup_path": mockup_path,
        "error": snapshot.error,
    }

    print(json.dumps(output, indent=2))


if __name__ == "__main__":
    main()
