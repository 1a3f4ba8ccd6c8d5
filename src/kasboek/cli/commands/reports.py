"""Report commands for kasboek CLI.

Text renditions of the dashboard: yearly summary, the six-month category
matrix, spending trends and expense/balance charts.
"""

import logging
from typing import Annotated

import polars as pl
import typer

from kasboek.analytics import (
    PERIODS,
    Period,
    bar_axis_max,
    bar_chart_data,
    filter_period,
    line_chart_data,
    matrix_data,
    pie_chart_data,
    pie_total,
    should_show_label,
    total_stats,
    trend_analysis,
)

from .common import CLI_ERRORS, format_amount, open_ledger

app = typer.Typer(help="Reports and charts", no_args_is_help=True)
logger = logging.getLogger(__name__)

BAR_WIDTH = 40

PeriodOption = Annotated[
    str,
    typer.Option("--period", "-P", help=f"Time window: {', '.join(PERIODS)}"),
]


def _check_period(period: str) -> Period:
    if period not in PERIODS:
        raise typer.BadParameter(f"--period must be one of {', '.join(PERIODS)}")
    return period  # type: ignore[return-value]


@app.command("summary")
def summary() -> None:
    """Income, expenses and balance for the current year."""
    try:
        with open_ledger() as ledger:
            stats = total_stats(ledger.transactions)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"Income:   {format_amount(stats.income):>16}")
    print(f"Expenses: {format_amount(stats.expense):>16}")
    print(f"Balance:  {format_amount(stats.balance):>16}")


@app.command("matrix")
def matrix(
    offset: Annotated[
        int,
        typer.Option("--offset", "-o", help="Move the 6-month window (negative = back)"),
    ] = 0,
) -> None:
    """Category x month overview of signed amounts for six months."""
    try:
        with open_ledger() as ledger:
            data = matrix_data(ledger.transactions, offset=offset)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    if not data.categories:
        print(f"No transactions between {data.months[0]} and {data.months[-1]}")
        return

    frame = data.to_frame()
    totals = {
        "category": "Total",
        **{month: data.month_total(month) for month in data.months},
        "total": sum(data.month_total(month) for month in data.months),
    }
    frame = pl.concat([frame, pl.DataFrame([totals], schema=frame.schema)])

    with pl.Config(tbl_rows=-1, tbl_cols=-1, tbl_hide_dataframe_shape=True):
        print(frame)


@app.command("trends")
def trends(period: PeriodOption = "ALL") -> None:
    """Categories whose spending this month deviates from the 3-month average."""
    selected = _check_period(period)
    try:
        with open_ledger() as ledger:
            analysis = trend_analysis(filter_period(ledger.transactions, selected))
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    if not analysis.high and not analysis.low:
        print("No notable changes this month")
        return

    if analysis.high:
        print("📈 Spending more than usual:")
        for item in analysis.high:
            print(
                f"   {item.category:<20} +{format_amount(item.diff)} ({item.pct_change:+d}%)"
            )
    if analysis.low:
        print("📉 Spending less than usual:")
        for item in analysis.low:
            print(
                f"   {item.category:<20} -{format_amount(item.diff)} ({item.pct_change:+d}%)"
            )


@app.command("bars")
def bars(period: PeriodOption = "ALL") -> None:
    """Top expense categories as a horizontal bar chart."""
    selected = _check_period(period)
    try:
        with open_ledger() as ledger:
            items = bar_chart_data(filter_period(ledger.transactions, selected))
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    if not items:
        print("No expenses in this period")
        return

    for item in items:
        bar = "█" * max(1, round(item.pct / 100 * BAR_WIDTH))
        print(f"{item.label:<20} {bar:<{BAR_WIDTH}} {format_amount(item.value)}")
    print(f"{'':<20} axis max: {format_amount(bar_axis_max(items))}")


@app.command("pie")
def pie(period: PeriodOption = "ALL") -> None:
    """Share of each category in total expenses."""
    selected = _check_period(period)
    try:
        with open_ledger() as ledger:
            txs = filter_period(ledger.transactions, selected)
            slices = pie_chart_data(txs)
            total = pie_total(txs)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    if not slices:
        print("No expenses in this period")
        return

    for item in slices:
        print(f"{item.label:<20} {item.percentage:>3}%  {format_amount(item.value)}")
    print(f"{'Total':<20}       {format_amount(total)}")


@app.command("balance")
def balance(period: PeriodOption = "1Y") -> None:
    """Account balance over time (latest balance per day, week or month)."""
    selected = _check_period(period)
    try:
        with open_ledger() as ledger:
            points = line_chart_data(
                filter_period(ledger.transactions, selected), selected
            )
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    if not points:
        print("No balance information in this period")
        return

    for index, point in enumerate(points):
        label = point.label if should_show_label(index, len(points), selected) else ""
        height = round((100 - point.y) / 100 * BAR_WIDTH)
        print(f"{label:>6} {'▇' * height:<{BAR_WIDTH}} {format_amount(point.value)}")
