"""Unit tests for the rule evaluation engine.

Covers field resolution, every operator, hard/soft semantics, scoring and
rationale text.
"""

from __future__ import annotations

import pytest

from modelcatalog.filters.engine import (
    ALL_PASSED,
    OPERATORS,
    UNDEFINED,
    evaluate,
    evaluate_clause,
    format_evaluation_result,
    resolve_field,
    values_equal,
)
from modelcatalog.models import ClauseType, Model, RuleClause, RuleOperator


def hard(field: str, operator: str, value) -> RuleClause:
    return RuleClause(field=field, operator=RuleOperator(operator), value=value)


def soft(field: str, operator: str, value, weight: float = 1.0) -> RuleClause:
    return RuleClause(
        field=field,
        operator=RuleOperator(operator),
        value=value,
        type=ClauseType.SOFT,
        weight=weight,
    )


@pytest.fixture
def gpt4() -> Model:
    return Model(
        id="gpt-4",
        name="GPT-4",
        provider="openai",
        context_window=128000,
        input_cost=0.5,
        output_cost=1.5,
        capabilities=["tools", "reasoning"],
        modalities=["text", "image"],
        open_weights=False,
        extra={"downloads": 1200, "benchmarks": {"mmlu": 86.4}, "family": "gpt"},
    )


@pytest.fixture
def claude() -> Model:
    return Model(id="claude-3-opus", name="Claude 3 Opus", provider="anthropic", input_cost=30.0)


class TestResolveField:
    """Dot-path lookup over canonical fields and the extra map."""

    def test_camel_and_snake_case_address_same_field(self, gpt4):
        assert resolve_field(gpt4, "contextWindow") == 128000
        assert resolve_field(gpt4, "context_window") == 128000

    def test_extra_values_reachable_directly(self, gpt4):
        assert resolve_field(gpt4, "downloads") == 1200

    def test_extra_prefix_addresses_extra_map(self, gpt4):
        assert resolve_field(gpt4, "extra.downloads") == 1200

    def test_nested_extra_path(self, gpt4):
        assert resolve_field(gpt4, "benchmarks.mmlu") == 86.4
        assert resolve_field(gpt4, "extra.benchmarks.mmlu") == 86.4

    def test_missing_path_is_undefined(self, gpt4):
        assert resolve_field(gpt4, "nonexistent") is UNDEFINED
        assert resolve_field(gpt4, "benchmarks.humaneval") is UNDEFINED
        assert resolve_field(gpt4, "provider.name") is UNDEFINED

    def test_plain_mapping(self):
        record = {"pricing": {"input": 2.0}}
        assert resolve_field(record, "pricing.input") == 2.0
        assert resolve_field(record, "pricing.output") is UNDEFINED


class TestOperators:
    """Each operator in isolation."""

    def test_dispatch_table_covers_every_operator(self):
        assert set(OPERATORS) == set(RuleOperator)

    def test_eq_and_ne(self, gpt4):
        assert evaluate_clause(hard("provider", "eq", "openai"), gpt4)
        assert not evaluate_clause(hard("provider", "eq", "anthropic"), gpt4)
        assert evaluate_clause(hard("provider", "ne", "anthropic"), gpt4)
        assert not evaluate_clause(hard("provider", "ne", "openai"), gpt4)

    def test_eq_does_not_conflate_bool_and_number(self):
        assert not values_equal(True, 1)
        assert not values_equal(0, False)
        assert values_equal(1, 1.0)
        assert values_equal(False, False)

    def test_eq_structural_on_lists(self, gpt4):
        assert evaluate_clause(hard("modalities", "eq", ["text", "image"]), gpt4)
        assert not evaluate_clause(hard("modalities", "eq", ["image", "text"]), gpt4)

    def test_undefined_field(self, gpt4):
        assert not evaluate_clause(hard("missing", "eq", "x"), gpt4)
        assert evaluate_clause(hard("missing", "ne", "x"), gpt4)
        assert not evaluate_clause(hard("missing", "gt", 1), gpt4)

    @pytest.mark.parametrize(
        "operator,value,expected",
        [
            ("gt", 100000, True),
            ("gt", 128000, False),
            ("gte", 128000, True),
            ("lt", 200000, True),
            ("lt", 128000, False),
            ("lte", 128000, True),
        ],
    )
    def test_numeric_comparisons(self, gpt4, operator, value, expected):
        assert evaluate_clause(hard("contextWindow", operator, value), gpt4) is expected

    def test_numeric_comparison_with_non_numeric_is_false(self, gpt4):
        assert not evaluate_clause(hard("provider", "gt", 1), gpt4)
        assert not evaluate_clause(hard("contextWindow", "gt", "1000"), gpt4)
        assert not evaluate_clause(hard("openWeights", "lt", 1), gpt4)

    def test_in_and_not_in(self, gpt4):
        assert evaluate_clause(hard("provider", "in", ["openai", "google"]), gpt4)
        assert not evaluate_clause(hard("provider", "in", ["anthropic"]), gpt4)
        assert evaluate_clause(hard("provider", "not_in", ["anthropic"]), gpt4)
        assert not evaluate_clause(hard("provider", "not_in", ["openai"]), gpt4)

    def test_in_requires_list_value(self, gpt4):
        assert not evaluate_clause(hard("provider", "in", "openai"), gpt4)
        assert not evaluate_clause(hard("provider", "not_in", "anthropic"), gpt4)

    def test_contains(self, gpt4):
        assert evaluate_clause(hard("capabilities", "contains", "tools"), gpt4)
        assert not evaluate_clause(hard("capabilities", "contains", "vision"), gpt4)
        # Field must be a list, substring matching is not supported
        assert not evaluate_clause(hard("provider", "contains", "open"), gpt4)

    def test_starts_and_ends_with(self, gpt4):
        assert evaluate_clause(hard("id", "starts_with", "gpt"), gpt4)
        assert evaluate_clause(hard("id", "ends_with", "-4"), gpt4)
        assert not evaluate_clause(hard("id", "starts_with", "claude"), gpt4)
        assert not evaluate_clause(hard("contextWindow", "starts_with", "128"), gpt4)


class TestEvaluate:
    """Hard/soft semantics, score and rationale."""

    def test_empty_rules_match_with_zero_score(self, gpt4, claude):
        for model in (gpt4, claude):
            result = evaluate([], model)
            assert result.match is True
            assert result.score == 0
            assert result.rationale == ALL_PASSED

    def test_provider_example(self, gpt4, claude):
        rules = [hard("provider", "eq", "openai")]

        matched = evaluate(rules, gpt4)
        rejected = evaluate(rules, claude)

        assert matched.match is True
        assert matched.failed_hard_clauses == 0
        assert rejected.match is False
        assert rejected.failed_hard_clauses == 1

    def test_hard_failure_does_not_stop_evaluation(self, claude):
        rules = [
            hard("provider", "eq", "openai"),
            hard("contextWindow", "gte", 1000),
            soft("inputCost", "gte", 10),
        ]

        result = evaluate(rules, claude)

        assert result.match is False
        assert result.failed_hard_clauses == 2
        assert result.passed_soft_clauses == 1
        assert result.score == 1.0
        assert "provider eq" in result.rationale
        assert "contextWindow gte" in result.rationale
        assert "Soft clause passed" in result.rationale

    def test_single_soft_clause_weighted_example(self, model_factory):
        rules = [soft("inputCost", "lte", 10, weight=0.6)]

        cheap = evaluate(rules, model_factory("cheap", input_cost=0.5))
        pricey = evaluate(rules, model_factory("pricey", input_cost=30))

        assert cheap.passed_soft_clauses == 1
        assert cheap.score == 1.0
        assert pricey.passed_soft_clauses == 0
        assert pricey.score == 0.0
        assert pricey.match is True

    def test_score_is_weighted_fraction(self, gpt4):
        rules = [
            soft("provider", "eq", "openai", weight=3),
            soft("provider", "eq", "google", weight=1),
        ]

        result = evaluate(rules, gpt4)

        assert result.score == pytest.approx(0.75)
        assert result.total_soft_clauses == 2
        assert result.passed_soft_clauses == 1

    def test_soft_clauses_never_affect_match(self, gpt4):
        rules = [soft("provider", "eq", "google"), soft("contextWindow", "lt", 10)]

        result = evaluate(rules, gpt4)

        assert result.match is True
        assert result.score == 0.0
        assert result.rationale == ALL_PASSED

    def test_zero_weight_soft_clauses_score_zero(self, gpt4):
        result = evaluate([soft("provider", "eq", "openai", weight=0)], gpt4)

        assert result.score == 0.0
        assert result.passed_soft_clauses == 1

    def test_hard_weight_is_ignored(self, gpt4):
        clause = RuleClause(field="provider", operator=RuleOperator.EQ, value="openai", weight=5)

        result = evaluate([clause], gpt4)

        assert result.score == 0.0
        assert result.total_soft_clauses == 0

    def test_rationale_lines(self, claude):
        rules = [hard("provider", "eq", "openai"), soft("inputCost", "gt", 1, weight=0.5)]

        result = evaluate(rules, claude)

        assert result.rationale == (
            'Hard clause failed: provider eq "openai"; '
            "Soft clause passed: inputCost gt 1 (+0.5)"
        )

    def test_all_passed_when_every_hard_clause_passes(self, claude):
        rules = [hard("provider", "eq", "anthropic")]

        assert evaluate(rules, claude).rationale == ALL_PASSED

    @pytest.mark.parametrize("passed", [0, 1, 2, 3])
    def test_score_bounded(self, gpt4, passed):
        rules = [soft("provider", "eq", "openai" if i < passed else "x", weight=i + 1) for i in range(3)]

        result = evaluate(rules, gpt4)

        assert 0.0 <= result.score <= 1.0
        assert result.passed_soft_clauses == passed


class TestFormatEvaluationResult:
    def test_rejected(self, claude):
        result = evaluate([hard("provider", "eq", "openai")], claude)

        assert format_evaluation_result(result).startswith("❌ Filter rejected (1 hard")

    def test_hard_only(self, gpt4):
        result = evaluate([hard("provider", "eq", "openai")], gpt4)

        assert format_evaluation_result(result) == "✓ Filter passed (hard clauses only)"

    def test_with_score(self, gpt4):
        result = evaluate([soft("provider", "eq", "openai"), soft("provider", "eq", "x")], gpt4)

        assert format_evaluation_result(result) == (
            "✓ Filter passed with score 50.0% (1/2 soft clauses)"
        )
