# ruff: noqa: S101
"""Tests for keyword-based categorization."""

import pytest

from kasboek.categorization import (
    apply_rule_to_transactions,
    apply_rules,
    find_matching_rule,
)
from kasboek.models import CategorizationRule, Transaction


@pytest.fixture
def rules() -> list[CategorizationRule]:
    return [
        CategorizationRule(keyword="albert heijn", category="Boodschappen"),
        CategorizationRule(
            keyword="netflix", category="Abonnementen", new_description="Netflix Abonnement"
        ),
        CategorizationRule(keyword="ns", category="Vervoer"),
    ]


class TestCategorization:
    """Rule matching and application."""

    @pytest.mark.unit
    def test_match_is_case_insensitive_substring(self, rules: list[CategorizationRule]) -> None:
        rule = find_matching_rule("BETALING ALBERT HEIJN 1234", rules)
        assert rule is not None
        assert rule.category == "Boodschappen"

    @pytest.mark.unit
    def test_first_matching_rule_wins(self) -> None:
        rules = [
            CategorizationRule(keyword="shop", category="First"),
            CategorizationRule(keyword="shop online", category="Second"),
        ]
        assert find_matching_rule("shop online bv", rules).category == "First"  # type: ignore[union-attr]

    @pytest.mark.unit
    def test_no_match_returns_none(self, rules: list[CategorizationRule]) -> None:
        assert find_matching_rule("Bakker Bart", rules) is None

    @pytest.mark.unit
    def test_apply_rules_sets_description(self, rules: list[CategorizationRule]) -> None:
        tx = Transaction(date="2025-01-01", description="NETFLIX.COM 123", amount=13.99)

        result = apply_rules(tx, rules)

        assert result.category == "Abonnementen"
        assert result.description == "Netflix Abonnement"
        assert tx.description == "NETFLIX.COM 123"

    @pytest.mark.unit
    def test_apply_rules_without_match_keeps_transaction(
        self, rules: list[CategorizationRule]
    ) -> None:
        tx = Transaction(date="2025-01-01", description="Bakker", category="Eten")
        assert apply_rules(tx, rules) == tx

    @pytest.mark.unit
    def test_apply_rule_to_transactions(self) -> None:
        rule = CategorizationRule(keyword="jumbo", category="Boodschappen")
        txs = [
            Transaction(id="1", date="2025-01-01", description="Jumbo Utrecht"),
            Transaction(id="2", date="2025-01-02", description="Kruidvat"),
        ]

        updated, changed = apply_rule_to_transactions(rule, txs)

        assert [tx.id for tx in changed] == ["1"]
        assert updated[0].category == "Boodschappen"
        assert updated[1].category == txs[1].category
