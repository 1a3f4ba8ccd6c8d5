"""Dashboard aggregates: pivot matrix, trends and chart series.

All functions are pure: they take transactions (and, where the result depends
on the current date, an explicit ``today``) and return plain data that the CLI
renders. Group-bys run on a polars frame built by :func:`transactions_frame`.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Literal, get_args

import polars as pl

from kasboek.models import Transaction

logger = logging.getLogger(__name__)

Period = Literal["1M", "6M", "1Y", "ALL"]
PERIODS: tuple[str, ...] = get_args(Period)

CATEGORY_PALETTE = (
    "#EF4444",
    "#F59E0B",
    "#10B981",
    "#3B82F6",
    "#6366F1",
    "#8B5CF6",
    "#EC4899",
    "#14B8A6",
    "#F97316",
    "#06B6D4",
    "#A855F7",
    "#FB7185",
)
DEFAULT_COLOR = "#6B7280"

TRANSACTION_SCHEMA = {
    "id": pl.String,
    "date": pl.String,
    "month": pl.String,
    "description": pl.String,
    "amount": pl.Float64,
    "signed_amount": pl.Float64,
    "type": pl.String,
    "category": pl.String,
    "account_number": pl.String,
    "current_balance": pl.Float64,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def transactions_frame(transactions: Sequence[Transaction]) -> pl.DataFrame:
    """Build a polars frame with one row per transaction."""
    records = [
        {
            "id": tx.id,
            "date": tx.date,
            "month": tx.month,
            "description": tx.description,
            "amount": tx.amount,
            "signed_amount": tx.signed_amount,
            "type": tx.type,
            "category": tx.category,
            "account_number": tx.account_number,
            "current_balance": tx.current_balance,
        }
        for tx in transactions
    ]
    return pl.DataFrame(records, schema=TRANSACTION_SCHEMA)


def _sum(frame: pl.DataFrame, column: str = "amount") -> float:
    if frame.is_empty():
        return 0.0
    return float(frame[column].sum())


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def round_half_up(value: float) -> int:
    """Round like JavaScript's ``Math.round`` (halves go up)."""
    return math.floor(value + 0.5)


def shift_months(day: date, months: int) -> date:
    """First day of the month ``months`` away from ``day``'s month."""
    years, month_index = divmod(day.month - 1 + months, 12)
    return date(day.year + years, month_index + 1, 1)


def subtract_months(day: date, months: int) -> date:
    """Same day ``months`` earlier, clamped to the end of a shorter month."""
    first = shift_months(day, -months)
    next_first = shift_months(first, 1)
    last_day = (next_first - first).days
    return first.replace(day=min(day.day, last_day))


def month_key(day: date) -> str:
    return day.isoformat()[:7]


def category_color(category: str | None) -> str:
    """Deterministic palette colour for a category name.

    Uses the classic ``h = c + ((h << 5) - h)`` string hash over UTF-16 code
    units with 32-bit shifts, so colours are stable across clients.
    """
    if not category:
        return DEFAULT_COLOR

    encoded = category.encode("utf-16-le")
    code_units = [
        int.from_bytes(encoded[i : i + 2], "little") for i in range(0, len(encoded), 2)
    ]

    h = 0
    for code in code_units:
        h = code + (_to_int32(_to_int32(h) << 5) - h)

    return CATEGORY_PALETTE[abs(h) % len(CATEGORY_PALETTE)]


# ---------------------------------------------------------------------------
# Summary cards and pivot matrix
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TotalStats:
    income: float
    expense: float

    @property
    def balance(self) -> float:
        return self.income - self.expense


def total_stats(
    transactions: Sequence[Transaction], today: date | None = None
) -> TotalStats:
    """Income and expense totals for the current calendar year."""
    today = today or date.today()
    df = transactions_frame(transactions).filter(
        pl.col("date").str.starts_with(f"{today.year:04d}-")
    )
    return TotalStats(
        income=_sum(df.filter(pl.col("type") == "income")),
        expense=_sum(df.filter(pl.col("type") == "expense")),
    )


@dataclass
class MatrixData:
    """Category x month pivot of signed amounts."""

    months: list[str]
    categories: list[str]
    cells: dict[tuple[str, str], float] = field(default_factory=dict)

    def value(self, category: str, month: str) -> float:
        return self.cells.get((category, month), 0.0)

    def row_total(self, category: str) -> float:
        return sum(self.value(category, month) for month in self.months)

    def month_total(self, month: str) -> float:
        return sum(self.value(category, month) for category in self.categories)

    def to_frame(self) -> pl.DataFrame:
        """Render as a frame: one row per category, one column per month."""
        rows = [
            {
                "category": category,
                **{month: self.value(category, month) for month in self.months},
                "total": self.row_total(category),
            }
            for category in self.categories
        ]
        schema = {
            "category": pl.String,
            **{month: pl.Float64 for month in self.months},
            "total": pl.Float64,
        }
        return pl.DataFrame(rows, schema=schema)


def matrix_months(offset: int = 0, today: date | None = None) -> list[str]:
    """The six ``YYYY-MM`` months ending ``offset`` months from today."""
    base = shift_months(today or date.today(), offset)
    return [month_key(shift_months(base, -i)) for i in range(5, -1, -1)]


def matrix_data(
    transactions: Sequence[Transaction], offset: int = 0, today: date | None = None
) -> MatrixData:
    """Six-month category pivot, oldest month first.

    Args:
        transactions: All transactions
        offset: Months to move the window (negative is back in time)
        today: Reference date (default: today)
    """
    months = matrix_months(offset, today)
    grouped = (
        transactions_frame(transactions)
        .filter(pl.col("month").is_in(months))
        .group_by(["category", "month"])
        .agg(pl.col("signed_amount").sum().alias("total"))
    )

    cells = {
        (row["category"], row["month"]): row["total"]
        for row in grouped.iter_rows(named=True)
    }
    categories = sorted({category for category, _ in cells})
    return MatrixData(months=months, categories=categories, cells=cells)


def matrix_value(
    transactions: Sequence[Transaction], category: str, month: str
) -> float:
    """Signed sum for one category in one ``YYYY-MM`` month."""
    df = transactions_frame(transactions).filter(
        (pl.col("category") == category) & (pl.col("month") == month)
    )
    return _sum(df, "signed_amount")


def matrix_row_total(
    transactions: Sequence[Transaction], category: str, months: Sequence[str]
) -> float:
    """Signed sum for one category over the given months."""
    df = transactions_frame(transactions).filter(
        (pl.col("category") == category) & pl.col("month").is_in(list(months))
    )
    return _sum(df, "signed_amount")


def month_total(transactions: Sequence[Transaction], month: str) -> float:
    """Signed sum over all categories for one month."""
    df = transactions_frame(transactions).filter(pl.col("month") == month)
    return _sum(df, "signed_amount")


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def period_cutoff(period: Period, today: date | None = None) -> date | None:
    """Earliest date included in ``period`` (None for ALL)."""
    today = today or date.today()
    if period == "1M":
        return subtract_months(today, 1)
    if period == "6M":
        return subtract_months(today, 6)
    if period == "1Y":
        return subtract_months(today, 12)
    return None


def filter_period(
    transactions: Sequence[Transaction], period: Period, today: date | None = None
) -> list[Transaction]:
    """Transactions on or after the period cutoff, oldest first."""
    ordered = sorted(transactions, key=lambda tx: tx.date)
    cutoff = period_cutoff(period, today)
    if cutoff is None:
        return ordered
    bound = cutoff.isoformat()
    return [tx for tx in ordered if tx.date >= bound]


@dataclass(frozen=True)
class TrendItem:
    category: str
    diff: float
    pct_change: int
    current: float
    avg: float


@dataclass
class TrendAnalysis:
    high: list[TrendItem] = field(default_factory=list)
    low: list[TrendItem] = field(default_factory=list)


def trend_analysis(
    transactions: Sequence[Transaction],
    today: date | None = None,
    min_amount: float = 100.0,
    min_pct_change: int = 20,
) -> TrendAnalysis:
    """Compare this month's spending per category with the prior 3-month average.

    A category is reported when either its current spending or its average
    exceeds ``min_amount`` and the change is at least ``min_pct_change``
    percent. ``high`` lists increases, ``low`` decreases (diff as absolute).
    """
    today = today or date.today()
    current_key = month_key(today)
    reference_keys = [month_key(shift_months(today, -i)) for i in range(1, 4)]

    expenses = transactions_frame(transactions).filter(pl.col("type") == "expense")
    current = dict(
        expenses.filter(pl.col("month") == current_key)
        .group_by("category")
        .agg(pl.col("amount").sum())
        .iter_rows()
    )
    reference = dict(
        expenses.filter(pl.col("month").is_in(reference_keys))
        .group_by("category")
        .agg(pl.col("amount").sum())
        .iter_rows()
    )

    results: list[TrendItem] = []
    for category in sorted(set(current) | set(reference)):
        now_value = current.get(category, 0.0)
        avg = reference.get(category, 0.0) / 3
        if not (avg > min_amount or now_value > min_amount):
            continue

        diff = now_value - avg
        pct_change = round_half_up(diff / avg * 100) if avg > 0 else 100
        if abs(pct_change) >= min_pct_change:
            results.append(TrendItem(category, diff, pct_change, now_value, avg))

    results.sort(key=lambda item: item.diff, reverse=True)

    return TrendAnalysis(
        high=[item for item in results if item.diff > 0],
        low=[
            TrendItem(item.category, abs(item.diff), item.pct_change, item.current, item.avg)
            for item in results
            if item.diff < 0
        ],
    )


# ---------------------------------------------------------------------------
# Chart series
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BarItem:
    label: str
    value: float
    color: str
    pct: float


def _expense_totals(transactions: Sequence[Transaction]) -> list[tuple[str, float]]:
    totals = (
        transactions_frame(transactions)
        .filter(pl.col("type") == "expense")
        .group_by("category")
        .agg(pl.col("amount").sum().alias("value"))
        .sort(["value", "category"], descending=[True, False])
    )
    return [(row[0], row[1]) for row in totals.iter_rows()]


def bar_chart_data(
    transactions: Sequence[Transaction], limit: int = 8
) -> list[BarItem]:
    """Top expense categories, largest first, with bar length in percent."""
    top = _expense_totals(transactions)[:limit]
    scale = max([value for _, value in top] + [10.0])
    return [
        BarItem(label, value, category_color(label), value / scale * 100)
        for label, value in top
    ]


def bar_axis_max(bars: Sequence[BarItem]) -> float:
    """A round axis maximum above the largest bar (0 when there are none)."""
    if not bars:
        return 0
    max_value = max([bar.value for bar in bars] + [10.0])
    if max_value < 100:
        return math.ceil(max_value / 10) * 10
    if max_value < 1000:
        return math.ceil(max_value / 100) * 100
    return math.ceil(max_value / 500) * 500


@dataclass(frozen=True)
class PieSlice:
    label: str
    value: float
    percentage: int
    color: str


def pie_chart_data(transactions: Sequence[Transaction]) -> list[PieSlice]:
    """Expense share per category, largest first."""
    totals = _expense_totals(transactions)
    grand_total = sum(value for _, value in totals)
    return [
        PieSlice(
            label,
            value,
            round_half_up(value / grand_total * 100) if grand_total else 0,
            category_color(label),
        )
        for label, value in totals
    ]


def pie_total(transactions: Sequence[Transaction]) -> float:
    """Sum of all expenses."""
    return _sum(transactions_frame(transactions).filter(pl.col("type") == "expense"))


@dataclass(frozen=True)
class LinePoint:
    key: str
    label: str
    value: float
    x: float
    y: float


def balance_group_key(tx_date: str, period: Period) -> tuple[str, str]:
    """Grouping key and axis label for a balance point.

    Days for 1M, ISO weeks for 6M, months for 1Y and ALL.
    """
    if period == "1M":
        return tx_date, tx_date[5:]
    if period == "6M":
        iso_year, week, _ = date.fromisoformat(tx_date).isocalendar()
        return f"{iso_year}-W{week:02d}", f"W{week:02d}"
    return tx_date[:7], tx_date[5:7]


def line_chart_data(
    transactions: Sequence[Transaction], period: Period
) -> list[LinePoint]:
    """Account balance over time, using the latest balance in each group.

    Only transactions with a known ``current_balance`` contribute. ``x`` runs
    from 0 to 100 across the points; ``y`` is 0 at the top of a scale that
    always includes zero.
    """
    latest: dict[str, tuple[str, float]] = {}
    for tx in sorted(transactions, key=lambda tx: tx.date):
        if tx.current_balance is None:
            continue
        key, label = balance_group_key(tx.date, period)
        latest[key] = (label, tx.current_balance)

    if not latest:
        return []

    keys = sorted(latest)
    values = [latest[key][1] for key in keys]
    min_value = min(0.0, *values)
    max_value = max(0.0, *values)
    value_range = (max_value - min_value) or 1.0
    steps = (len(keys) - 1) or 1

    return [
        LinePoint(
            key=key,
            label=latest[key][0],
            value=latest[key][1],
            x=i / steps * 100,
            y=100 - (latest[key][1] - min_value) / value_range * 100,
        )
        for i, key in enumerate(keys)
    ]


def should_show_label(index: int, total: int, period: Period) -> bool:
    """Thin out x-axis labels so long series stay readable."""
    if total <= 1:
        return True
    if period == "1M":
        return index % 7 == 0
    if total <= 12:
        return True
    if total <= 24:
        return index % 2 == 0
    if total <= 52:
        return index % 4 == 0
    return index % 8 == 0
