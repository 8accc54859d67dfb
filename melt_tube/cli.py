"""CLI entry point for melt-tube."""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from .cache import (
    clear_cache,
    create_summary_cache,
    create_transcript_cache,
    get_cache_key_file,
    get_cache_key_youtube,
    get_cache_stats,
    list_cached,
    load_summary,
    load_transcript,
)
from .costs import estimate_summarization_cost, format_cost_warning
from .messaging import Command, CommandType, Event, EventType, MessageBus
from .render import parse_markdown, render_html, render_panel
from .service import SummaryService
from .settings import ConfigError, Settings, get_settings_path, load_settings, update_setting
from .sources.local_file import load_local_transcript
from .sources.youtube import TranscriptUnavailable, extract_video_id, fetch_transcript
from .summarize import HttpxClient, SummaryClient, chunk_text

# Main app
app = typer.Typer(
    name="melt-tube",
    help="Summarize YouTube transcripts chunk by chunk and merge the results.",
    no_args_is_help=True,
)

config_app = typer.Typer(help="Show or change settings.")
app.add_typer(config_app, name="config")

cache_app = typer.Typer(help="Manage cache.")
app.add_typer(cache_app, name="cache")

console = Console()
logger = logging.getLogger(__name__)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose output"),
    ] = False,
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_transcript(source: str, lang: str, force: bool) -> tuple[str, dict, str]:
    """
    Get transcript text for a YouTube URL or local .txt file, using the cache.

    Returns:
        Tuple of (text, meta, cache_key)

    Raises:
        TranscriptUnavailable: Transcript could not be obtained
    """
    video_id = extract_video_id(source)

    if video_id:
        cache_key = get_cache_key_youtube(video_id, lang)
    else:
        file_path = Path(source)
        if not file_path.exists():
            raise TranscriptUnavailable(f"File not found: {source}")
        cache_key = get_cache_key_file(file_path)

    if not force:
        cached = load_transcript(cache_key)
        if cached:
            logger.debug("Using cached transcript %s", cache_key)
            meta = {
                "source": source,
                "title": cached.title,
                "fetched_at": cached.cached_at,
                "method": cached.method,
                "lang": cached.lang,
            }
            return cached.text, meta, cache_key

    if video_id:
        result = fetch_transcript(source, lang=lang)
        text, title, method, found_lang = result.text, video_id, result.method, result.lang
    else:
        local = load_local_transcript(Path(source))
        text, title, method, found_lang = local.text, local.title, "file", ""

    create_transcript_cache(
        cache_key,
        text=text,
        source=video_id or str(Path(source).absolute()),
        title=title,
        lang=found_lang,
        method=method,
    )
    meta = {
        "source": source,
        "title": title,
        "fetched_at": datetime.now().isoformat(),
        "method": method,
        "lang": found_lang,
    }
    return text, meta, cache_key


def _write_outputs(
    out_dir: Path,
    transcript_text: str,
    md_summary: str,
    html_summary: str,
    meta: dict,
) -> None:
    """Write output files."""
    out_dir.mkdir(parents=True, exist_ok=True)
    (out_dir / "meta.json").write_text(json.dumps(meta, indent=2, ensure_ascii=False))
    (out_dir / "transcript.txt").write_text(transcript_text)
    (out_dir / "summary.md").write_text(md_summary)
    (out_dir / "summary.html").write_text(html_summary)


async def _run_summary(source: str, settings: Settings, lang: str) -> tuple[str | None, str | None]:
    """
    Run one job through the message bus, showing live progress.

    Returns:
        Tuple of (summary, error_message); both None if the job was cancelled
    """
    bus = MessageBus()
    outcome: dict[EventType, str] = {}

    async def fetch(src: str) -> str:
        text, _, _ = await asyncio.to_thread(_load_transcript, src, lang, False)
        return text

    with console.status("Starting...") as status:

        def on_event(event: Event) -> None:
            if event.type is EventType.PROGRESS:
                status.update(event.detail)
            else:
                outcome[event.type] = event.text

        bus.subscribe(on_event)

        async with HttpxClient() as http:
            SummaryService(bus, SummaryClient(http), fetch_transcript=fetch, settings_loader=lambda: settings)
            handle = await bus.dispatch(Command(CommandType.START_SUMMARY, source=source))
            try:
                await handle.wait()
            except asyncio.CancelledError:
                await bus.dispatch(Command(CommandType.CANCEL, job_id=handle.job_id))
                raise

    return outcome.get(EventType.COMPLETE), outcome.get(EventType.ERROR)


@app.command()
def summarize(
    source: Annotated[str, typer.Argument(help="YouTube URL or local .txt file path")],
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Output directory"),
    ] = None,
    lang: Annotated[
        str,
        typer.Option("--lang", "-l", help="Caption language code"),
    ] = "en",
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Model name (overrides settings)"),
    ] = None,
    chunk_size: Annotated[
        int | None,
        typer.Option("--chunk-size", help="Estimated tokens per chunk (overrides settings)"),
    ] = None,
    concurrency: Annotated[
        int | None,
        typer.Option("--concurrency", help="Max parallel chunk requests (overrides settings)"),
    ] = None,
    api_url: Annotated[
        str | None,
        typer.Option("--api-url", help="Chat-completion endpoint (overrides settings)"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Ignore cache and re-fetch/re-summarize"),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip cost confirmation prompts"),
    ] = False,
    no_render: Annotated[
        bool,
        typer.Option("--no-render", help="Do not print the summary to the terminal"),
    ] = False,
) -> None:
    """Fetch a transcript and generate a merged summary."""
    try:
        settings = load_settings(
            model=model,
            chunk_size=chunk_size,
            concurrency_limit=concurrency,
            api_url=api_url,
        )
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    if out is None:
        video_id = extract_video_id(source)
        out = Path("./melt-tube") / (video_id or Path(source).stem)

    # Step 1: Get transcript
    try:
        with console.status("Retrieving transcript..."):
            transcript_text, meta, cache_key = _load_transcript(source, lang, force)
    except TranscriptUnavailable as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print(f"[green]✓[/green] Transcript: {len(transcript_text)} chars")

    # Step 2: Summarize
    chunks = chunk_text(transcript_text, settings.chunk_size)
    md_summary: str | None = None

    if not force:
        cached_summary = load_summary(cache_key, settings.model)
        if cached_summary:
            logger.debug("Using cached summary for %s", cache_key)
            md_summary = cached_summary.markdown

    if md_summary is None:
        estimate = estimate_summarization_cost(chunks, settings.model)
        if estimate["should_warn"] and not yes:
            console.print(
                format_cost_warning(
                    "Summarization",
                    estimate["estimated_cost"],
                    f"{estimate['transcript_tokens']:,} tokens → {estimate['num_chunks']} chunks",
                )
            )
            if not typer.confirm("Continue?"):
                raise typer.Exit(0)

        try:
            md_summary, error = asyncio.run(_run_summary(source, settings, lang))
        except KeyboardInterrupt as e:
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(130) from e

        if error is not None:
            console.print(f"[red]Summarization failed:[/red] {error}")
            raise typer.Exit(1)
        if md_summary is None:
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(130)

        create_summary_cache(cache_key, md_summary, settings.model, len(chunks))

    console.print(f"[green]✓[/green] Summary generated from {len(chunks)} chunks")

    # Step 3: Write outputs
    document = parse_markdown(md_summary)
    meta.update({"model": settings.model, "api_url": settings.api_url, "chunks": len(chunks)})
    _write_outputs(out, transcript_text, md_summary, render_html(document, settings.display_theme), meta)

    if not no_render:
        console.print(render_panel(document, settings.display_theme, title=meta.get("title")))

    console.print(Panel(f"[bold green]Done![/bold green]\n\nOutput: {out}"))


@app.command()
def render(
    file: Annotated[Path, typer.Argument(help="Markdown file to render")],
    html: Annotated[
        Path | None,
        typer.Option("--html", help="Write an HTML fragment here instead of printing"),
    ] = None,
) -> None:
    """Render a markdown summary with the configured display theme."""
    if not file.exists():
        console.print(f"[red]File not found:[/red] {file}")
        raise typer.Exit(1)

    try:
        theme = load_settings(require_api_key=False).display_theme
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    document = parse_markdown(file.read_text(encoding="utf-8"))
    if html is not None:
        html.write_text(render_html(document, theme))
        console.print(f"[green]Wrote {html}[/green]")
    else:
        console.print(render_panel(document, theme, title=file.name))


# Config subcommands
@config_app.command("show")
def config_show() -> None:
    """Show current settings (API key masked)."""
    try:
        settings = load_settings(require_api_key=False)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    data = settings.model_dump(by_alias=True)
    key = data["apiKey"]
    data["apiKey"] = f"{key[:3]}…{key[-4:]}" if len(key) > 8 else ("(set)" if key else "(not set)")
    console.print_json(json.dumps(data))


@config_app.command("set")
def config_set(
    key: Annotated[str, typer.Argument(help="Setting name, e.g. chunkSize or displayTheme.textColor")],
    value: Annotated[str, typer.Argument(help="New value")],
) -> None:
    """Change one setting."""
    try:
        update_setting(key, value)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    console.print(f"[green]Saved {key}[/green]")


@config_app.command("path")
def config_path() -> None:
    """Print the settings file location."""
    console.print(str(get_settings_path()))


# Cache subcommands
@cache_app.command("list")
def cache_list() -> None:
    """List cached entries."""
    entries = list_cached()
    if not entries:
        console.print("[dim]Cache is empty[/dim]")
        return

    for entry in entries:
        summary_indicator = "📝" if entry["has_summary"] else "  "
        console.print(
            f"{summary_indicator} [bold]{entry['title'][:50]}[/bold] "
            f"[dim]({entry['cache_key']}, {entry['method']})[/dim]"
        )


@cache_app.command("stats")
def cache_stats() -> None:
    """Show cache statistics."""
    stats = get_cache_stats()
    console.print(f"Cache directory: {stats['cache_dir']}")
    console.print(f"Transcripts: {stats['transcript_count']}")
    console.print(f"Summaries: {stats['summary_count']}")
    console.print(f"Total size: {stats['total_size_kb']:.1f} KB")


@cache_app.command("clear")
def cache_clear(
    key: Annotated[
        str | None,
        typer.Option("--key", "-k", help="Specific cache key to clear"),
    ] = None,
    all_entries: Annotated[
        bool,
        typer.Option("--all", "-a", help="Clear all cache entries"),
    ] = False,
) -> None:
    """Clear cache entries."""
    if not key and not all_entries:
        console.print("[yellow]Specify --key or --all to clear cache[/yellow]")
        raise typer.Exit(1)

    count = clear_cache(key)
    console.print(f"[green]Cleared {count} cache files[/green]")


if __name__ == "__main__":
    app()
