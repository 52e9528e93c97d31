# src/cli/runner.py

"""Headless build runner with console progress and exit codes."""

import logging

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from src.config.settings import Settings
from src.scrapers.errors import SiteBuildError
from src.services.site_builder import BuildReport, SiteBuilder

logger = logging.getLogger("charmed_site.cli")

# Status messages go to stderr
_err = Console(stderr=True)


def _print_summary(report: BuildReport) -> None:
    """Render a Rich summary table of the finished build."""
    table = Table(
        title="Build Summary",
        show_lines=False,
        title_style="bold cyan",
    )
    table.add_column("Item", style="bold")
    table.add_column("Count", justify="right")

    table.add_row("Listings discovered", str(report.discovered_count))
    table.add_row("Products built", str(len(report.products)))
    table.add_row("Listings dropped", str(len(report.failures)))
    table.add_row("Images downloaded", str(report.images_downloaded))
    table.add_row("Images cached", str(report.images_cached))
    table.add_row("Images missing", str(report.images_missing))
    table.add_row("Files written", str(len(report.pages_written)))

    _err.print(table)

    for failure in report.failures:
        _err.print(
            f"[yellow]⚠ {escape(failure.url)}: {escape(failure.error or '')}[/yellow]"
        )


async def run_build(settings: Settings) -> int:
    """Run one build and return an exit code (0=ok, 1=fail)."""
    _err.print("\n[bold]🚀 BUILD START[/bold]")
    _err.print(
        f"[dim]discovery={settings.DISCOVERY_SOURCE} "
        f"scrape={settings.SCRAPE_MODE} "
        f"output={escape(str(settings.OUTPUT_ROOT))}[/dim]"
    )

    builder = SiteBuilder(
        settings,
        progress=lambda msg: _err.print(f"→ {escape(msg)}"),
    )
    try:
        report = await builder.build()
    except SiteBuildError as exc:
        logger.error("Build failed: %s", exc, exc_info=True)
        _err.print(f"[red]❌ BUILD FAILED: {escape(str(exc))}[/red]")
        return 1
    except Exception as exc:
        logger.critical("Unexpected build error", exc_info=True)
        _err.print(
            f"[red]❌ BUILD FAILED: {type(exc).__name__}: {escape(str(exc))}[/red]"
        )
        return 1

    _print_summary(report)
    _err.print("[green]✅ BUILD COMPLETE, full site generated.[/green]\n")
    return 0
