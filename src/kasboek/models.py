"""Record types stored in the typed document store.

Every record travels over the wire as a JSON document with camelCase keys and
a ``type`` marker naming the item type, e.g.::

    {"type": "rule", "keyword": "netflix", "category": "Subscriptions"}

A transaction's own income/expense direction is kept in ``transactionType`` so
that the item marker never clobbers it.
"""

import datetime
from typing import Any, ClassVar, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TransactionType = Literal["income", "expense"]

ITEM_TRANSACTION = "transaction"
ITEM_RULE = "rule"
ITEM_MAPPING_TEMPLATE = "mapping_template"
ITEM_ACCOUNT_NAMES = "account_names"
ITEM_MANUAL_CATEGORIES = "manual_categories"

ITEM_TYPES = (
    ITEM_TRANSACTION,
    ITEM_RULE,
    ITEM_MAPPING_TEMPLATE,
    ITEM_ACCOUNT_NAMES,
    ITEM_MANUAL_CATEGORIES,
)

UNCATEGORIZED = "Unknown"
DEFAULT_CATEGORY = "General"
UNKNOWN_DESCRIPTION = "Unknown description"


class WireModel(BaseModel):
    """Base model using camelCase aliases on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Document(WireModel):
    """A record that is persisted as an item in the document store."""

    item_type: ClassVar[str]

    id: str = Field(default="", description="Store-assigned identifier")

    def to_document(self) -> dict[str, Any]:
        """Serialize to a wire document, including the ``type`` marker.

        The ``id`` is kept when set; stores strip it from request bodies.
        """
        data = self.model_dump(by_alias=True, exclude_none=True)
        if not data.get("id"):
            data.pop("id", None)
        data["type"] = self.item_type
        return data

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Self:
        """Build a record from a wire document returned by a store."""
        data = dict(document)
        data.pop("type", None)
        return cls.model_validate(data)


class Transaction(Document):
    """A single income or expense booking."""

    item_type: ClassVar[str] = ITEM_TRANSACTION

    date: str = Field(..., description="Booking date, ISO YYYY-MM-DD")
    description: str = ""
    amount: float = Field(default=0.0, description="Absolute amount")
    type: TransactionType = Field(default="expense", alias="transactionType")
    category: str = DEFAULT_CATEGORY
    account_number: str | None = None
    current_balance: float | None = Field(
        default=None, description="Account balance after this transaction"
    )
    tags: list[str] = Field(default_factory=list)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        """Ensure the date is a real calendar date in ISO form."""
        value = v.strip()[:10]
        try:
            datetime.date.fromisoformat(value)
        except ValueError as e:
            raise ValueError(f"Invalid transaction date: {v!r}") from e
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> list[str]:
        """Treat missing tags as an empty list."""
        if v is None:
            return []
        return v

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Transaction":
        """Build a transaction, accepting the legacy direction-in-``type`` layout."""
        data = dict(document)
        marker = data.pop("type", None)
        if "transactionType" not in data and marker in ("income", "expense"):
            data["transactionType"] = marker
        return cls.model_validate(data)

    @property
    def signed_amount(self) -> float:
        """Amount with income positive and expense negative."""
        return self.amount if self.type == "income" else -self.amount

    @property
    def month(self) -> str:
        """The ``YYYY-MM`` month this transaction falls in."""
        return self.date[:7]


class CsvMapping(WireModel):
    """Zero-based column indexes for a bank CSV export."""

    date_col: int = Field(default=0, ge=0)
    desc_col: int = Field(default=1, ge=0)
    amount_col: int = Field(default=2, ge=0)
    category_col: int | None = Field(default=None, ge=0)
    account_col: int | None = Field(default=None, ge=0)
    balance_col: int | None = Field(default=None, ge=0)

    @property
    def max_index(self) -> int:
        """Highest column index this mapping reads."""
        return max(
            self.date_col,
            self.desc_col,
            self.amount_col,
            self.category_col or 0,
            self.account_col or 0,
            self.balance_col or 0,
        )


class CsvMappingTemplate(Document, CsvMapping):
    """A named, reusable CSV column mapping."""

    item_type: ClassVar[str] = ITEM_MAPPING_TEMPLATE

    name: str

    def mapping(self) -> CsvMapping:
        """Return just the column mapping of this template."""
        return CsvMapping.model_validate(
            self.model_dump(include=set(CsvMapping.model_fields))
        )


class CategorizationRule(Document):
    """Keyword rule assigning a category (and optionally a new description)."""

    item_type: ClassVar[str] = ITEM_RULE

    keyword: str
    category: str
    new_description: str | None = None


class AccountNameRecord(Document):
    """Singleton record with friendly names for account numbers."""

    item_type: ClassVar[str] = ITEM_ACCOUNT_NAMES

    names: dict[str, str] = Field(default_factory=dict)


class ManualCategoryRecord(Document):
    """Singleton record with categories that were added by hand."""

    item_type: ClassVar[str] = ITEM_MANUAL_CATEGORIES

    categories: list[str] = Field(default_factory=list)
