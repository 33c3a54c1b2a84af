"""Rule evaluation engine.

Evaluates a list of hard/soft clauses against one catalog model:

- hard clauses decide ``match`` (all must pass)
- soft clauses only contribute their weight to ``score``
- every clause is evaluated, so the rationale is always complete

Field paths are dot-separated and resolve against the model's canonical
fields (camelCase or snake_case) and then its ``extra`` map. Operators never
raise; a type mismatch simply evaluates to False.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any

from modelcatalog.models import (
    MODEL_FIELDS,
    ClauseType,
    EvaluationResult,
    Model,
    RuleClause,
    RuleOperator,
)

ALL_PASSED = "All criteria passed"
NONE_MATCHED = "No matching criteria"


class _Undefined:
    """Marker for a field path that does not resolve."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


# ---------------------------------------------------------------------------
# Field resolution
# ---------------------------------------------------------------------------


def resolve_field(model: Model | Mapping[str, Any], path: str) -> Any:
    """Resolve a dot path against a model, returning UNDEFINED if absent.

    ``contextWindow`` and ``context_window`` address the same field;
    ``extra.downloads`` and ``downloads`` both reach the extra map when no
    canonical field has that name.
    """
    head, *rest = path.split(".")

    if isinstance(model, Model):
        if head in MODEL_FIELDS:
            value = getattr(model, MODEL_FIELDS[head])
        elif head in model.extra:
            value = model.extra[head]
        else:
            return UNDEFINED
    elif isinstance(model, Mapping):
        value = model.get(head, UNDEFINED)
    else:
        return UNDEFINED

    for part in rest:
        if isinstance(value, Mapping) and part in value:
            value = value[part]
        else:
            return UNDEFINED
    return value


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def values_equal(left: Any, right: Any) -> bool:
    """Structural equality that keeps booleans and numbers apart."""
    if left is UNDEFINED or right is UNDEFINED:
        return False
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return left.keys() == right.keys() and all(
            values_equal(left[k], right[k]) for k in left
        )
    if type(left) is not type(right):
        return False
    return left == right


def _compare(check: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    def op(field_value: Any, clause_value: Any) -> bool:
        return _is_number(field_value) and _is_number(clause_value) and check(
            field_value, clause_value
        )

    return op


def _in(field_value: Any, clause_value: Any) -> bool:
    if not isinstance(clause_value, list):
        return False
    return any(values_equal(field_value, item) for item in clause_value)


def _not_in(field_value: Any, clause_value: Any) -> bool:
    if not isinstance(clause_value, list):
        return False
    return not any(values_equal(field_value, item) for item in clause_value)


def _contains(field_value: Any, clause_value: Any) -> bool:
    if not isinstance(field_value, list):
        return False
    return any(values_equal(item, clause_value) for item in field_value)


def _starts_with(field_value: Any, clause_value: Any) -> bool:
    return (
        isinstance(field_value, str)
        and isinstance(clause_value, str)
        and field_value.startswith(clause_value)
    )


def _ends_with(field_value: Any, clause_value: Any) -> bool:
    return (
        isinstance(field_value, str)
        and isinstance(clause_value, str)
        and field_value.endswith(clause_value)
    )


OPERATORS: dict[RuleOperator, Callable[[Any, Any], bool]] = {
    RuleOperator.EQ: values_equal,
    RuleOperator.NE: lambda f, c: not values_equal(f, c),
    RuleOperator.GT: _compare(lambda f, c: f > c),
    RuleOperator.GTE: _compare(lambda f, c: f >= c),
    RuleOperator.LT: _compare(lambda f, c: f < c),
    RuleOperator.LTE: _compare(lambda f, c: f <= c),
    RuleOperator.IN: _in,
    RuleOperator.NOT_IN: _not_in,
    RuleOperator.CONTAINS: _contains,
    RuleOperator.STARTS_WITH: _starts_with,
    RuleOperator.ENDS_WITH: _ends_with,
}


def evaluate_clause(clause: RuleClause, model: Model | Mapping[str, Any]) -> bool:
    field_value = resolve_field(model, clause.field)
    return OPERATORS[clause.operator](field_value, clause.value)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _describe(clause: RuleClause) -> str:
    return f"{clause.field} {clause.operator.value} {json.dumps(clause.value)}"


def evaluate(rules: list[RuleClause], model: Model | Mapping[str, Any]) -> EvaluationResult:
    """Evaluate ``rules`` against one model.

    Args:
        rules: Hard and soft clauses, in display order
        model: Catalog model (or a plain mapping with the same shape)

    Returns:
        EvaluationResult with match, score in [0, 1] and rationale
    """
    failed_hard = 0
    passed_soft = 0
    total_soft = 0
    soft_weight = 0.0
    passed_weight = 0.0
    lines: list[str] = []

    for clause in rules:
        passed = evaluate_clause(clause, model)

        if clause.type is ClauseType.HARD:
            if not passed:
                failed_hard += 1
                lines.append(f"Hard clause failed: {_describe(clause)}")
            continue

        total_soft += 1
        soft_weight += clause.weight
        if passed:
            passed_soft += 1
            passed_weight += clause.weight
            lines.append(f"Soft clause passed: {_describe(clause)} (+{clause.weight:g})")

    match = failed_hard == 0
    score = passed_weight / soft_weight if soft_weight > 0 else 0.0

    if lines:
        rationale = "; ".join(lines)
    else:
        rationale = ALL_PASSED if match else NONE_MATCHED

    return EvaluationResult(
        match=match,
        score=score,
        failed_hard_clauses=failed_hard,
        passed_soft_clauses=passed_soft,
        total_soft_clauses=total_soft,
        rationale=rationale,
    )


def format_evaluation_result(result: EvaluationResult) -> str:
    """One-line human summary of an evaluation."""
    if not result.match:
        return f"❌ Filter rejected ({result.failed_hard_clauses} hard clause(s) failed)"
    if result.total_soft_clauses == 0:
        return "✓ Filter passed (hard clauses only)"
    return (
        f"✓ Filter passed with score {result.score * 100:.1f}% "
        f"({result.passed_soft_clauses}/{result.total_soft_clauses} soft clauses)"
    )
