"""Keyword-based auto-categorization.

A rule matches when its keyword occurs anywhere in a transaction description,
ignoring case. Rules are evaluated in order and only the first match is used.
"""

import logging
from collections.abc import Iterable, Sequence

from kasboek.models import CategorizationRule, Transaction

logger = logging.getLogger(__name__)


def normalize_keyword(keyword: str) -> str:
    """Rule keywords are stored lower-cased and trimmed."""
    return keyword.strip().lower()


def find_matching_rule(
    description: str, rules: Iterable[CategorizationRule]
) -> CategorizationRule | None:
    """Return the first rule whose keyword occurs in ``description``."""
    lower_desc = description.lower()
    for rule in rules:
        keyword = normalize_keyword(rule.keyword)
        if keyword and keyword in lower_desc:
            return rule
    return None


def apply_rule(tx: Transaction, rule: CategorizationRule) -> Transaction:
    """Return a copy of ``tx`` with the rule's category (and description)."""
    update: dict[str, str] = {"category": rule.category}
    if rule.new_description:
        update["description"] = rule.new_description
    return tx.model_copy(update=update)


def apply_rules(tx: Transaction, rules: Iterable[CategorizationRule]) -> Transaction:
    """Categorize ``tx`` with the first matching rule, if any."""
    rule = find_matching_rule(tx.description, rules)
    if rule is None:
        return tx
    logger.debug(f"Rule '{rule.keyword}' matched '{tx.description}' -> {rule.category}")
    return apply_rule(tx, rule)


def apply_rule_to_transactions(
    rule: CategorizationRule, transactions: Sequence[Transaction]
) -> tuple[list[Transaction], list[Transaction]]:
    """Apply a single rule to every matching transaction.

    Unlike :func:`apply_rules`, this ignores rule order: the given rule wins
    for every transaction it matches.

    Returns:
        tuple: (all transactions with updates applied, only the changed ones)
    """
    keyword = normalize_keyword(rule.keyword)
    updated: list[Transaction] = []
    changed: list[Transaction] = []

    for tx in transactions:
        if keyword and keyword in tx.description.lower():
            new_tx = apply_rule(tx, rule)
            changed.append(new_tx)
            updated.append(new_tx)
        else:
            updated.append(tx)

    return updated, changed
