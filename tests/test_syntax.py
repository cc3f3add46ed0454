import random

import pytest

from SetPuzzle.type import Die, Operator, TokenKind
from SetPuzzle.syntax import (
    BinaryOp, Complement, Operand, has_restriction, is_valid_expression, is_valid_restriction,
    is_valid_syntax, parse_expression, parse_restriction, pattern_string,
)


@pytest.mark.parametrize("text", [
    "red", "U", "∅", "red ′", "red ′ ′", "red ∪ green", "red ∪ green ′",
    "U ′ ∩ ∅", "red − blue ∩ gold ∪ green",
])
def test_valid_expressions(row, text):
    assert is_valid_expression(row(text))
    assert is_valid_syntax(row(text))


@pytest.mark.parametrize("text", [
    "", "∪", "′", "′ red", "red green", "red ∪", "∪ red", "red ∪ ∪ green",
    "red ′ green", "red = green", "red ∪ ′",
])
def test_invalid_expressions(row, text):
    assert not is_valid_expression(row(text))


@pytest.mark.parametrize("text", ["red = green", "red ∪ blue ⊆ gold ′", "U ⊆ ∅ ′", "red ′ = blue − gold"])
def test_valid_restrictions(row, text):
    assert is_valid_restriction(row(text))


@pytest.mark.parametrize("text", [
    "red", "red green", "= red", "red =", "red = green = blue", "red ∪ = green", "red = ′", "",
])
def test_invalid_restrictions(row, text):
    assert not is_valid_restriction(row(text))


def test_complement_binds_to_preceding_term(row):
    node = parse_expression(row("red ∪ green ′"))
    assert node == BinaryOp(
        Operator.UNION,
        Operand(Die.color("red")),
        Complement(Operand(Die.color("green"))),
    )


def test_operators_associate_left(row):
    node = parse_expression(row("red ∪ green ∩ blue"))
    assert isinstance(node, BinaryOp)
    assert node.op is Operator.INTERSECTION
    assert node.left == BinaryOp(Operator.UNION, Operand(Die.color("red")), Operand(Die.color("green")))
    assert node.right == Operand(Die.color("blue"))


def test_parse_restriction_sides(row):
    clause = parse_restriction(row("red ∪ blue ⊆ gold"))
    assert clause.comparator.value == "⊆"
    assert clause.left == BinaryOp(Operator.UNION, Operand(Die.color("red")), Operand(Die.color("blue")))
    assert clause.right == Operand(Die.color("gold"))


def test_has_restriction_and_pattern(row):
    assert has_restriction(row("red = blue"))
    assert not has_restriction(row("red ∪ blue"))
    assert pattern_string(row("red ∪ green ′")) == "color,operator,color,complement"


def _reference_accepts(tokens):
    # operand (complement)* (operator operand (complement)*)*
    expecting_operand = True
    for die in tokens:
        if die.kind is TokenKind.RESTRICTION:
            return False
        if die.is_operand:
            if not expecting_operand:
                return False
            expecting_operand = False
        elif die.kind is TokenKind.COMPLEMENT:
            if expecting_operand:
                return False
        else:  # operator
            if expecting_operand:
                return False
            expecting_operand = True
    return not expecting_operand


def test_validator_matches_reference_walker():
    alphabet = [
        Die.color("red"), Die.color("blue"), Die.constant("U"), Die.constant("∅"),
        Die.operator("∪"), Die.operator("−"), Die.complement(), Die.restriction("="),
    ]
    rng = random.Random(99)
    for _ in range(3000):
        tokens = [rng.choice(alphabet) for _ in range(rng.randint(0, 7))]
        assert is_valid_expression(tokens) == _reference_accepts(tokens), tokens
