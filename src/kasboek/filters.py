"""Transaction list filtering."""

from collections.abc import Iterable
from dataclasses import dataclass

from kasboek.models import Transaction

ALL = "ALL"


@dataclass(frozen=True)
class TransactionFilter:
    """Filter criteria for the transaction list.

    Attributes:
        search: Case-insensitive text matched against description, category and tags
        category: Exact category, or ``ALL``
        type: ``income``, ``expense`` or ``ALL``
        account: Exact account number, or ``ALL``
        date_from: Inclusive ISO lower bound, empty for none
        date_to: Inclusive ISO upper bound, empty for none
    """

    search: str = ""
    category: str = ALL
    type: str = ALL
    account: str = ALL
    date_from: str = ""
    date_to: str = ""

    def matches(self, tx: Transaction) -> bool:
        term = self.search.lower()
        if term:
            tags = " ".join(tx.tags).lower()
            if not (
                term in tx.description.lower()
                or term in tx.category.lower()
                or term in tags
            ):
                return False

        if self.category != ALL and tx.category != self.category:
            return False
        if self.type != ALL and tx.type != self.type:
            return False
        if self.account != ALL and tx.account_number != self.account:
            return False

        # ISO dates compare correctly as strings
        if self.date_from and tx.date < self.date_from:
            return False
        if self.date_to and tx.date > self.date_to:
            return False

        return True

    def apply(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        """Return matching transactions, newest first."""
        matching = [tx for tx in transactions if self.matches(tx)]
        matching.sort(key=lambda tx: tx.date, reverse=True)
        return matching
