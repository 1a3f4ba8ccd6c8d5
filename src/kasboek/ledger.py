"""Ledger application service.

``Ledger`` owns the loaded state of a profile (transactions, categorization
rules, CSV mapping templates, account names and manual categories) and keeps
it in sync with a :class:`~kasboek.storage.DocumentStore`.

State changes are optimistic: memory is updated first, then the store. When a
store call fails, memory is rolled back (or reloaded from the store for
multi-item changes) and the :class:`~kasboek.exceptions.StoreError` is
re-raised to the caller.
"""

import logging
import random
from datetime import date, timedelta
from typing import TypeVar

from kasboek.categorization import (
    apply_rule_to_transactions,
    apply_rules,
    normalize_keyword,
)
from kasboek.exceptions import LedgerValidationError, StoreError
from kasboek.exporters import (
    transactions_from_json,
    transactions_to_csv,
    transactions_to_json,
)
from kasboek.filters import TransactionFilter
from kasboek.importers.csv_importer import CsvPreview, ImportResult, build_transactions
from kasboek.models import (
    ITEM_TRANSACTION,
    ITEM_TYPES,
    AccountNameRecord,
    CategorizationRule,
    CsvMapping,
    CsvMappingTemplate,
    Document,
    ManualCategoryRecord,
    Transaction,
)
from kasboek.storage.base import DocumentStore

logger = logging.getLogger(__name__)

DocT = TypeVar("DocT", bound=Document)

DUMMY_TRANSACTION_COUNT = 80
DUMMY_CATEGORIES = (
    "Boodschappen",
    "Huur",
    "Salaris",
    "Verzekering",
    "Uit eten",
    "Vervoer",
    "Abonnementen",
    "Kleding",
)
DUMMY_INCOME_CATEGORY = "Salaris"
DUMMY_INCOME_DESCRIPTION = "Werkgever BV"
DUMMY_ACCOUNT_NAMES = {
    "NL01BANK0123456789": "Betaalrekening",
    "NL99SPAR9876543210": "Spaarrekening",
}
DUMMY_MANUAL_CATEGORIES = ["Vrije tijd", "Cadeaus", "Vakantie"]


class Ledger:
    """In-memory view of a profile's bookkeeping, backed by a document store."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.transactions: list[Transaction] = []
        self.rules: list[CategorizationRule] = []
        self.templates: list[CsvMappingTemplate] = []
        self.account_names: dict[str, str] = {}
        self.manual_categories: list[str] = []

        # Ids of the singleton records, empty until they exist in the store
        self._account_names_id = ""
        self._manual_categories_id = ""

    # ------------------------------------------------------------------
    # Loading and saving
    # ------------------------------------------------------------------

    def load_all(self) -> None:
        """Load every item type from the store, replacing in-memory state."""
        self.transactions = [
            Transaction.from_document(doc)
            for doc in self.store.get_items(Transaction.item_type)
        ]
        self.rules = [
            CategorizationRule.from_document(doc)
            for doc in self.store.get_items(CategorizationRule.item_type)
        ]
        self.templates = [
            CsvMappingTemplate.from_document(doc)
            for doc in self.store.get_items(CsvMappingTemplate.item_type)
        ]

        account_docs = self.store.get_items(AccountNameRecord.item_type)
        account_record = (
            AccountNameRecord.from_document(account_docs[0])
            if account_docs
            else AccountNameRecord()
        )
        self.account_names = dict(account_record.names)
        self._account_names_id = account_record.id

        category_docs = self.store.get_items(ManualCategoryRecord.item_type)
        category_record = (
            ManualCategoryRecord.from_document(category_docs[0])
            if category_docs
            else ManualCategoryRecord()
        )
        self.manual_categories = list(category_record.categories)
        self._manual_categories_id = category_record.id

        logger.debug(
            f"Loaded {len(self.transactions)} transactions, {len(self.rules)} rules, "
            f"{len(self.templates)} templates"
        )

    def _reload_after_failure(self) -> None:
        try:
            self.load_all()
        except StoreError as e:
            logger.warning(f"Could not reload data after a failed update: {e}")

    def save_item(self, record: DocT) -> DocT:
        """Update ``record`` when it has an id, add it otherwise.

        Returns:
            The record as stored, with its canonical id
        """
        document = record.to_document()
        if record.id:
            saved = self.store.update_item(document)
        else:
            saved = self.store.add_item(document)
        return type(record).from_document(saved)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def get_account_name(self, account_number: str | None) -> str:
        """Friendly name for an account, falling back to the number itself."""
        if not account_number:
            return "-"
        return self.account_names.get(account_number) or account_number

    def set_account_name(self, account_number: str, name: str) -> None:
        """Set (or, with an empty name, clear) a friendly name in memory."""
        name = name.strip()
        if name:
            self.account_names[account_number] = name
        else:
            self.account_names.pop(account_number, None)

    def unique_account_numbers(self) -> list[str]:
        return sorted({tx.account_number for tx in self.transactions if tx.account_number})

    def save_account_names(self) -> AccountNameRecord:
        """Persist the account name record."""
        record = AccountNameRecord(
            id=self._account_names_id, names=dict(self.account_names)
        )
        saved = self.save_item(record)
        self._account_names_id = saved.id
        return saved

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def all_categories(self) -> list[str]:
        """Categories used by transactions plus manually added ones, sorted."""
        used = {tx.category for tx in self.transactions}
        return sorted(used | set(self.manual_categories))

    def save_manual_categories(self) -> ManualCategoryRecord:
        record = ManualCategoryRecord(
            id=self._manual_categories_id, categories=list(self.manual_categories)
        )
        saved = self.save_item(record)
        self._manual_categories_id = saved.id
        return saved

    def add_manual_category(self, name: str) -> str:
        """Add a category that has no transactions yet.

        Raises:
            LedgerValidationError: If the name is empty or already in use
            StoreError: If saving fails (the category is not added)
        """
        name = name.strip()
        if not name:
            raise LedgerValidationError("Category name is required")
        if name in self.all_categories():
            raise LedgerValidationError(f"Category '{name}' already exists")

        previous = list(self.manual_categories)
        self.manual_categories.append(name)
        try:
            self.save_manual_categories()
        except StoreError:
            self.manual_categories = previous
            raise

        logger.info(f"Added category '{name}'")
        return name

    def delete_manual_category(self, name: str) -> None:
        """Remove a manual category. Existing transactions keep their category."""
        if name not in self.manual_categories:
            raise LedgerValidationError(f"'{name}' is not a manual category")

        previous = list(self.manual_categories)
        self.manual_categories = [cat for cat in previous if cat != name]
        try:
            self.save_manual_categories()
        except StoreError:
            self.manual_categories = previous
            raise

        logger.info(f"Deleted category '{name}'")

    def rename_category(self, old: str, new: str) -> int:
        """Rename a category on transactions, rules and the manual list.

        All changed records are persisted. On a store failure the ledger is
        reloaded from the store and the error re-raised.

        Returns:
            Number of transactions that were renamed
        """
        new = new.strip()
        if not new:
            raise LedgerValidationError("New category name is required")
        if new == old:
            return 0

        changed_txs: list[Transaction] = []
        transactions: list[Transaction] = []
        for tx in self.transactions:
            if tx.category == old:
                tx = tx.model_copy(update={"category": new})
                changed_txs.append(tx)
            transactions.append(tx)

        changed_rules: list[CategorizationRule] = []
        rules: list[CategorizationRule] = []
        for rule in self.rules:
            if rule.category == old:
                rule = rule.model_copy(update={"category": new})
                changed_rules.append(rule)
            rules.append(rule)

        manual: list[str] = []
        for cat in self.manual_categories:
            cat = new if cat == old else cat
            if cat not in manual:
                manual.append(cat)

        self.transactions = transactions
        self.rules = rules
        self.manual_categories = manual

        try:
            for rule in changed_rules:
                self.save_item(rule)
            self.save_manual_categories()
            for tx in changed_txs:
                self.save_item(tx)
        except StoreError:
            self._reload_after_failure()
            raise

        logger.info(
            f"Renamed category '{old}' to '{new}' "
            f"({len(changed_txs)} transactions, {len(changed_rules)} rules)"
        )
        return len(changed_txs)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def get_transaction(self, transaction_id: str) -> Transaction:
        for tx in self.transactions:
            if tx.id == transaction_id:
                return tx
        raise LedgerValidationError(f"Transaction not found: {transaction_id}")

    def delete_all_transactions(self) -> None:
        try:
            self.store.delete_bulk("type", ITEM_TRANSACTION)
        except StoreError:
            self._reload_after_failure()
            raise
        self.transactions = []
        logger.info("Deleted all transactions")

    def save_transaction(self, tx: Transaction, is_new: bool) -> Transaction:
        """Validate and persist a new or edited transaction.

        New transactions are categorized by the rules first. A category that
        is not known yet is added to the manual category list.

        Raises:
            LedgerValidationError: If description or a positive amount is missing
            StoreError: If saving fails (memory is restored)
        """
        if not tx.description.strip() or tx.amount <= 0:
            raise LedgerValidationError("A description and an amount above 0 are required")

        if is_new:
            tx = apply_rules(tx.model_copy(update={"id": ""}), self.rules)

        if tx.category and tx.category not in self.all_categories():
            try:
                self.add_manual_category(tx.category)
            except StoreError as e:
                logger.warning(f"Could not add category '{tx.category}': {e}")

        if is_new:
            saved = self.save_item(tx)
            self.transactions.append(saved)
            return saved

        old_tx = self.get_transaction(tx.id)
        previous = list(self.transactions)
        self.transactions = [tx if t.id == tx.id else t for t in self.transactions]
        try:
            saved = self.save_item(tx)
        except StoreError:
            self.transactions = previous
            raise

        self.transactions = [saved if t.id == old_tx.id else t for t in self.transactions]
        return saved

    def delete_transaction(self, transaction_id: str) -> None:
        if not transaction_id:
            raise LedgerValidationError("Cannot delete a transaction without an id")

        previous = list(self.transactions)
        self.transactions = [tx for tx in previous if tx.id != transaction_id]
        try:
            self.store.delete_item(transaction_id)
        except StoreError:
            self.transactions = previous
            raise

    # ------------------------------------------------------------------
    # Categorization rules
    # ------------------------------------------------------------------

    def add_rule(
        self, keyword: str, category: str, new_description: str | None = None
    ) -> CategorizationRule:
        """Create a keyword rule.

        Raises:
            LedgerValidationError: If keyword or category is missing
        """
        keyword = normalize_keyword(keyword)
        category = category.strip()
        if not keyword or not category:
            raise LedgerValidationError("Keyword and category are required")

        rule = CategorizationRule(
            keyword=keyword,
            category=category,
            new_description=(new_description or "").strip() or None,
        )

        previous = list(self.rules)
        self.rules.append(rule)
        try:
            saved = self.save_item(rule)
        except StoreError:
            self.rules = previous
            raise

        self.rules = [*previous, saved]
        logger.info(f"Added rule '{keyword}' -> {category}")
        return saved

    def delete_rule(self, rule_id: str) -> None:
        if not any(rule.id == rule_id for rule in self.rules):
            raise LedgerValidationError(f"Rule not found: {rule_id}")

        previous = list(self.rules)
        self.rules = [rule for rule in previous if rule.id != rule_id]
        try:
            self.store.delete_item(rule_id)
        except StoreError:
            self.rules = previous
            raise

    def apply_rule_to_existing(self, rule: CategorizationRule) -> int:
        """Apply one rule to all existing matching transactions.

        Returns:
            Number of updated transactions
        """
        updated, changed = apply_rule_to_transactions(rule, self.transactions)
        self.transactions = updated

        try:
            for tx in changed:
                self.store.update_item(tx.to_document())
        except StoreError:
            self._reload_after_failure()
            raise

        logger.info(f"Rule '{rule.keyword}' updated {len(changed)} transaction(s)")
        return len(changed)

    # ------------------------------------------------------------------
    # CSV mapping templates
    # ------------------------------------------------------------------

    def find_template(self, name: str) -> CsvMappingTemplate | None:
        for template in self.templates:
            if template.name == name:
                return template
        return None

    def load_mapping_template(self, name: str) -> CsvMapping:
        template = self.find_template(name)
        if template is None:
            raise LedgerValidationError(f"Mapping template not found: {name}")
        return template.mapping()

    def save_mapping_template(self, name: str, mapping: CsvMapping) -> CsvMappingTemplate:
        """Create or overwrite the template called ``name``."""
        name = name.strip()
        if not name:
            raise LedgerValidationError("Template name is required")

        existing = self.find_template(name)
        template = CsvMappingTemplate(
            id=existing.id if existing else "",
            name=name,
            **mapping.model_dump(),
        )

        previous = list(self.templates)
        if existing:
            self.templates = [template if t.name == name else t for t in previous]
        else:
            self.templates = [*previous, template]

        try:
            saved = self.save_item(template)
        except StoreError:
            self.templates = previous
            raise

        self.templates = [saved if t.name == name else t for t in self.templates]
        logger.info(f"Saved mapping template '{name}'")
        return saved

    def delete_mapping_template(self, name: str) -> None:
        template = self.find_template(name)
        if template is None:
            raise LedgerValidationError(f"Mapping template not found: {name}")

        previous = list(self.templates)
        self.templates = [t for t in previous if t.name != name]
        try:
            self.store.delete_item(template.id)
        except StoreError:
            self.templates = previous
            raise

    # ------------------------------------------------------------------
    # Bulk edit and import
    # ------------------------------------------------------------------

    def bulk_edit(
        self,
        transaction_filter: TransactionFilter,
        category: str | None = None,
        description: str | None = None,
    ) -> int:
        """Set category and/or description on every filtered transaction.

        When the description changes, the rules run again on the result.

        Returns:
            Number of updated transactions
        """
        category = (category or "").strip()
        description = (description or "").strip()
        if not category and not description:
            raise LedgerValidationError("Provide a category or a description to change")

        selected = {tx.id for tx in transaction_filter.apply(self.transactions)}
        update: dict[str, str] = {}
        if category:
            update["category"] = category
        if description:
            update["description"] = description

        changed: list[Transaction] = []
        transactions: list[Transaction] = []
        for tx in self.transactions:
            if tx.id in selected:
                tx = tx.model_copy(update=update)
                if description:
                    tx = apply_rules(tx, self.rules)
                changed.append(tx)
            transactions.append(tx)
        self.transactions = transactions

        try:
            for tx in changed:
                self.store.update_item(tx.to_document())
        except StoreError:
            self._reload_after_failure()
            raise

        logger.info(f"Bulk updated {len(changed)} transaction(s)")
        return len(changed)

    def import_csv(self, preview: CsvPreview, mapping: CsvMapping) -> ImportResult:
        """Convert CSV rows with ``mapping`` and store the transactions one by one."""
        result = build_transactions(preview.data_rows, mapping, self.rules)

        saved: list[Transaction] = []
        try:
            for tx in result.transactions:
                saved.append(self.save_item(tx))
        except StoreError:
            self._reload_after_failure()
            raise

        self.transactions.extend(saved)
        result.transactions = saved
        logger.info(f"Imported {result.imported} transaction(s) ({result.skipped} skipped)")
        return result

    # ------------------------------------------------------------------
    # Export, backup and demo data
    # ------------------------------------------------------------------

    def export_filtered_csv(self, transaction_filter: TransactionFilter) -> str:
        return transactions_to_csv(transaction_filter.apply(self.transactions))

    def export_backup(self) -> str:
        return transactions_to_json(self.transactions)

    def restore_backup(self, json_text: str) -> int:
        """Replace all stored transactions with those in a JSON backup.

        Returns:
            Number of restored transactions
        """
        restored = transactions_from_json(json_text)

        saved: list[Transaction] = []
        try:
            self.store.delete_bulk("type", ITEM_TRANSACTION)
            for tx in restored:
                saved.append(self.save_item(tx.model_copy(update={"id": ""})))
        except StoreError:
            self._reload_after_failure()
            raise

        self.transactions = saved
        logger.info(f"Restored {len(saved)} transaction(s) from backup")
        return len(saved)

    def load_dummy_data(self, seed: int | None = None, today: date | None = None) -> int:
        """Wipe every item type and upload generated demo data.

        Returns:
            Number of generated transactions
        """
        rng = random.Random(seed)
        today = today or date.today()
        expense_categories = [c for c in DUMMY_CATEGORIES if c != DUMMY_INCOME_CATEGORY]

        transactions: list[Transaction] = []
        for _ in range(DUMMY_TRANSACTION_COUNT):
            tx_date = today - timedelta(days=rng.randrange(365))
            is_income = rng.random() > 0.8
            category = (
                DUMMY_INCOME_CATEGORY if is_income else rng.choice(expense_categories)
            )
            transactions.append(
                Transaction(
                    date=tx_date.isoformat(),
                    description=(
                        DUMMY_INCOME_DESCRIPTION if is_income else f"Betaling aan {category}"
                    ),
                    amount=float(
                        2500 + rng.randrange(500) if is_income else 5 + rng.randrange(200)
                    ),
                    type="income" if is_income else "expense",
                    category=category,
                    account_number=f"NL{rng.randrange(99)}BANK0{rng.randrange(999999999)}",
                    current_balance=float(1000 + rng.randrange(5000)),
                    tags=["zakelijk"] if rng.random() < 0.2 else [],
                )
            )

        rules = [
            CategorizationRule(keyword="albert heijn", category="Boodschappen"),
            CategorizationRule(
                keyword="netflix",
                category="Abonnementen",
                new_description="Netflix Abonnement",
            ),
            CategorizationRule(keyword="ns", category="Vervoer"),
        ]

        try:
            for item_type in ITEM_TYPES:
                self.store.delete_bulk("type", item_type)

            records: list[Document] = [
                *transactions,
                *rules,
                AccountNameRecord(names=dict(DUMMY_ACCOUNT_NAMES)),
                ManualCategoryRecord(categories=list(DUMMY_MANUAL_CATEGORIES)),
            ]
            for record in records:
                self.store.add_item(record.to_document())
        except StoreError:
            self._reload_after_failure()
            raise

        self.load_all()
        logger.info(f"Loaded demo data with {len(transactions)} transactions")
        return len(transactions)
