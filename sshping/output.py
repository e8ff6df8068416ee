"""Presentation of benchmark summaries."""

import json

from rich import box
from rich.console import Console
from rich.table import Table

from sshping.models import LatencyStats, Summary
from sshping.utils.format import Formatter

TABLE_STYLES: dict[str, box.Box | None] = {
    "empty": None,
    "blank": box.SIMPLE,
    "ascii": box.ASCII,
    "ascii-rounded": box.ASCII2,
    "psql": box.MINIMAL,
    "markdown": box.MARKDOWN,
    "modern": box.SQUARE,
    "sharp": box.HEAVY,
    "extended": box.DOUBLE,
    "rounded": box.ROUNDED,
}
DEFAULT_TABLE_STYLE = "sharp"


def summary_rows(summary: Summary, formatter: Formatter) -> list[tuple[str, str, str]]:
    """(test, metric, result) rows in display order."""
    rows = [("SSH", "Connect time", formatter.format_seconds(summary.connect_time))]

    if summary.echo is not None:
        stats = summary.echo.stats
        rows.extend(
            [
                ("Latency", "Characters sent", formatter.format_number(summary.echo.char_sent)),
                ("Latency", "Average", formatter.format_duration(stats.mean)),
                ("Latency", "Std deviation", formatter.format_duration(stats.stddev)),
                ("Latency", "Median", formatter.format_duration(stats.median)),
                ("Latency", "Minimum", formatter.format_duration(stats.minimum)),
                ("Latency", "Maximum", formatter.format_duration(stats.maximum)),
                ("Latency", "1% high", formatter.format_duration(stats.p1)),
                ("Latency", "5% high", formatter.format_duration(stats.p5)),
                ("Latency", "10% high", formatter.format_duration(stats.p10)),
            ]
        )

    if summary.speed is not None:
        if summary.speed.upload is not None:
            rows.append(("Speed", "Upload", formatter.format_speed(summary.speed.upload.speed)))
        if summary.speed.download is not None:
            rows.append(("Speed", "Download", formatter.format_speed(summary.speed.download.speed)))

    return rows


def build_table(summary: Summary, formatter: Formatter, style: str = DEFAULT_TABLE_STYLE) -> Table:
    """Build the Test / Metric / Result table.

    The test name is printed only on the first row of each group.

    Raises:
        ValueError: If ``style`` is not a known table style
    """
    if style not in TABLE_STYLES:
        raise ValueError(f"Unknown table style '{style}'. Choose from: {', '.join(TABLE_STYLES)}")

    table_box = TABLE_STYLES[style]
    table = Table(
        box=table_box,
        show_edge=table_box is not None,
        show_header=True,
        header_style="bold",
    )
    table.add_column("Test", style="cyan", justify="center")
    table.add_column("Metric", justify="center")
    table.add_column("Result", style="green", justify="center")

    previous = None
    for test, metric, result in summary_rows(summary, formatter):
        table.add_row(test if test != previous else "", metric, result)
        previous = test
    return table


def render_json(summary: Summary, formatter: Formatter) -> str:
    """JSON document with raw values and their formatted renderings."""
    document = summary.to_dict()
    document["formatted"] = {
        f"{test} {metric}".lower().replace(" ", "_"): result
        for test, metric, result in summary_rows(summary, formatter)
    }
    return json.dumps(document, indent=2)


def ping_summary(stats: LatencyStats) -> str:
    """``ping``-style rtt line, in milliseconds."""
    values = (stats.minimum, stats.mean, stats.maximum, stats.stddev)
    return "rtt min/avg/max/mdev = " + "/".join(f"{value / 1_000_000:.3f}" for value in values) + " ms"


def print_summary(
    summary: Summary,
    formatter: Formatter,
    output_format: str = "table",
    table_style: str = DEFAULT_TABLE_STYLE,
    show_ping_summary: bool = False,
    console: Console | None = None,
) -> None:
    """Write the summary to stdout in the requested format."""
    console = console or Console()
    if output_format == "json":
        console.print(render_json(summary, formatter), markup=False, highlight=False, emoji=False, soft_wrap=True)
    else:
        console.print(build_table(summary, formatter, table_style))

    if show_ping_summary and summary.echo is not None:
        console.print(ping_summary(summary.echo.stats), markup=False, highlight=False, emoji=False)
