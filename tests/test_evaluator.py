import pytest

from SetPuzzle.type import Card, ExpressionEngine, InvalidExpressionError, MalformedInputError
from SetPuzzle.evaluator import (
    DEFAULT_ENGINE, calculate_score, evaluate_expression, evaluate_restricted,
    restriction_conflicts, restriction_holds,
)

from conftest import ALL, BLUE, GOLD, GREEN, RED


@pytest.mark.parametrize("text,expected", [
    ("red", RED), ("blue", BLUE), ("green", GREEN), ("gold", GOLD),
    ("U", ALL), ("∅", frozenset()),
])
def test_operands(cards, row, text, expected):
    assert evaluate_expression(row(text), cards) == expected


@pytest.mark.parametrize("color,expected", [("red", RED), ("green", GREEN), ("gold", GOLD), ("blue", BLUE)])
def test_color_complement_is_cards_without_color(cards, row, color, expected):
    assert evaluate_expression(row(f"{color} ′"), cards) == ALL - expected


def test_constant_complements(cards, row):
    assert evaluate_expression(row("U ′"), cards) == frozenset()
    assert evaluate_expression(row("∅ ′"), cards) == ALL


def test_double_complement_is_identity(cards, row):
    assert evaluate_expression(row("gold ′ ′"), cards) == GOLD


def test_complement_applies_to_last_term_only(cards, row):
    assert evaluate_expression(row("red ∪ green ′"), cards) == frozenset({0, 2, 3, 5, 6, 7})
    assert (ALL - (RED | GREEN)) == frozenset({0, 5, 7})


def test_left_to_right_folding(cards, row):
    assert evaluate_expression(row("red ∪ green ∩ gold"), cards) == frozenset({1, 2})
    assert evaluate_expression(row("red − green ∪ blue"), cards) == BLUE


def test_union_and_intersection_commute(cards, row):
    assert evaluate_expression(row("red ∪ gold"), cards) == evaluate_expression(row("gold ∪ red"), cards)
    assert evaluate_expression(row("blue ∩ green"), cards) == evaluate_expression(row("green ∩ blue"), cards)


def test_difference_does_not_commute(cards, row):
    assert evaluate_expression(row("red − green"), cards) == frozenset({6})
    assert evaluate_expression(row("green − red"), cards) == frozenset({1, 4})


def test_invalid_sequence_raises(cards, row):
    with pytest.raises(InvalidExpressionError):
        evaluate_expression(row("red ∪"), cards)


def test_non_card_board_raises(row):
    with pytest.raises(MalformedInputError):
        evaluate_expression(row("red"), [Card.of("red"), "blue"])


def test_subset_restriction(cards, row):
    assert restriction_conflicts(row("red ⊆ green"), cards) == frozenset({6})
    assert not restriction_holds(row("red ⊆ green"), cards)
    assert restriction_holds(row("red − blue ⊆ green"), cards)


def test_equals_restriction(cards, row):
    assert restriction_conflicts(row("red = green"), cards) == frozenset({1, 4, 6})
    assert restriction_holds(row("U = blue ∪ blue ′"), cards)
    assert restriction_conflicts(row("gold = gold ′"), cards) == ALL


def test_restricted_evaluation_is_a_gate(cards, row):
    assert evaluate_restricted(row("blue"), row("red − blue ⊆ green"), cards) == BLUE
    assert evaluate_restricted(row("blue"), row("red ⊆ green"), cards) is None
    # a holding restriction with an empty result is still a result
    assert evaluate_restricted(row("∅"), row("red ⊆ U"), cards) == frozenset()


def test_invalid_restriction_raises(cards, row):
    with pytest.raises(InvalidExpressionError):
        restriction_holds(row("red ⊆"), cards)


def test_score(row):
    assert calculate_score(row("red ∪ green")) == 60
    assert calculate_score(row("red ⊆ U blue ′")) == (5 + 20 + 15 + 5 + 15) * 5
    assert calculate_score(()) == 0


def test_default_engine_protocol(cards, row):
    assert isinstance(DEFAULT_ENGINE, ExpressionEngine)
    assert DEFAULT_ENGINE.evaluate(row("gold"), cards) == GOLD
