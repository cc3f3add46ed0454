"""
evaluator.py
============
Set-theory evaluation of cube rows against a board of cards.

Overview:
---------
- A color die matches the indices of the cards that show that color.
- U matches every card index, ∅ matches none.
- ′ replaces the preceding term's set with its complement within the board.
- ∪ ∩ − fold left to right into a running accumulator (− is accumulator minus term).
- A restriction row (`left = right` or `left ⊆ right`) is a gate: when it
  does not hold the arrangement yields no result at all (None), which is
  different from a valid empty result.

Rows must pass the validator first; evaluating a rejected row raises
InvalidExpressionError.

Public API:
-----------
evaluate_expression(tokens, cards) -> frozenset[int]
evaluate_restricted(set_name_tokens, restriction_tokens, cards) -> frozenset[int] | None
restriction_conflicts(restriction_tokens, cards) -> frozenset[int]
restriction_holds(restriction_tokens, cards) -> bool
calculate_score(dice) -> int
class SetTheoryEngine  # ExpressionEngine implementation used by solver/generator
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, Iterable, Optional, Sequence, Tuple

try:
    from .type import (
        Card, CardSet, Die, InvalidExpressionError, MalformedInputError, Operator,
        Restriction, SetConstant, TokenKind, TokenSequence, ALL_COLORS, COMPLEMENT_SYMBOL,
    )
    from .syntax import (
        Complement, Node, Operand, RestrictionClause,
        is_valid_expression, is_valid_restriction, parse_expression, parse_restriction,
    )
except ImportError:  # direct execution fallback
    from type import (
        Card, CardSet, Die, InvalidExpressionError, MalformedInputError, Operator,
        Restriction, SetConstant, TokenKind, TokenSequence, ALL_COLORS, COMPLEMENT_SYMBOL,
    )
    from syntax import (
        Complement, Node, Operand, RestrictionClause,
        is_valid_expression, is_valid_restriction, parse_expression, parse_restriction,
    )

# Points per die kind/value for scoring an arrangement
COLOR_POINTS = 5
DIE_POINTS: Dict[str, int] = {
    Operator.UNION.value: 10,
    Operator.INTERSECTION.value: 10,
    Operator.DIFFERENCE.value: 10,
    COMPLEMENT_SYMBOL: 15,
    SetConstant.UNIVERSE.value: 15,
    SetConstant.EMPTY.value: 15,
    Restriction.EQUALS.value: 20,
    Restriction.SUBSET.value: 20,
}


# --------------
# Operand tables
# --------------

@lru_cache(maxsize=512)
def _operand_table(cards: Tuple[Card, ...]) -> Dict[str, CardSet]:
    """value -> matching indices for every operand die, plus the universe under 'U'."""
    table: Dict[str, CardSet] = {
        color.value: frozenset(i for i, card in enumerate(cards) if card.has(color))
        for color in ALL_COLORS
    }
    table[SetConstant.UNIVERSE.value] = frozenset(range(len(cards)))
    table[SetConstant.EMPTY.value] = frozenset()
    return table


def _as_board(cards: Sequence[Card]) -> Tuple[Card, ...]:
    board = tuple(cards)
    if not all(isinstance(c, Card) for c in board):
        raise MalformedInputError("cards must be a sequence of Card values")
    return board


def _eval_node(node: Node, table: Dict[str, CardSet]) -> CardSet:
    if isinstance(node, Operand):
        return table[node.die.value]
    if isinstance(node, Complement):
        return table[SetConstant.UNIVERSE.value] - _eval_node(node.operand, table)
    left = _eval_node(node.left, table)
    right = _eval_node(node.right, table)
    if node.op is Operator.UNION:
        return left | right
    if node.op is Operator.INTERSECTION:
        return left & right
    return left - right


def _conflicts(clause: RestrictionClause, table: Dict[str, CardSet]) -> CardSet:
    left = _eval_node(clause.left, table)
    right = _eval_node(clause.right, table)
    if clause.comparator is Restriction.SUBSET:
        return left - right
    return left ^ right


# ---------
# Public API
# ---------

def evaluate_node(node: Node, cards: Sequence[Card]) -> CardSet:
    """Evaluate an already-parsed expression tree."""
    return _eval_node(node, _operand_table(_as_board(cards)))


def evaluate_expression(tokens: TokenSequence, cards: Sequence[Card]) -> CardSet:
    """Indices of the cards matched by a set-name row."""
    node = parse_expression(tokens)
    if node is None:
        raise InvalidExpressionError(f"Not a valid set expression: {' '.join(d.value for d in tokens)!r}")
    return evaluate_node(node, cards)


def restriction_conflicts(restriction_tokens: TokenSequence, cards: Sequence[Card]) -> CardSet:
    """
    Cards that break a restriction: for `=` the symmetric difference of both
    sides, for `⊆` the left-side cards missing from the right side.
    """
    clause = parse_restriction(restriction_tokens)
    if clause is None:
        raise InvalidExpressionError(
            f"Not a valid restriction: {' '.join(d.value for d in restriction_tokens)!r}"
        )
    return _conflicts(clause, _operand_table(_as_board(cards)))


def restriction_holds(restriction_tokens: TokenSequence, cards: Sequence[Card]) -> bool:
    return not restriction_conflicts(restriction_tokens, cards)


def evaluate_restricted(
    set_name_tokens: TokenSequence,
    restriction_tokens: TokenSequence,
    cards: Sequence[Card],
) -> Optional[CardSet]:
    """Evaluate the set-name row only if the restriction row holds; otherwise None."""
    if not restriction_holds(restriction_tokens, cards):
        return None
    return evaluate_expression(set_name_tokens, cards)


def calculate_score(dice: Iterable[Die]) -> int:
    """Sum of die points multiplied by the number of dice used."""
    dice = list(dice)
    total = 0
    for die in dice:
        if die.kind is TokenKind.COLOR:
            total += COLOR_POINTS
        else:
            total += DIE_POINTS.get(die.value, 0)
    return total * len(dice)


class SetTheoryEngine:
    """
    Default ExpressionEngine. Stateless apart from the shared operand-table
    cache, so one instance can be handed to any number of solvers.
    """

    def is_valid_expression(self, tokens: TokenSequence) -> bool:
        return is_valid_expression(tokens)

    def is_valid_restriction(self, tokens: TokenSequence) -> bool:
        return is_valid_restriction(tokens)

    def evaluate(self, tokens: TokenSequence, cards: Sequence[Card]) -> CardSet:
        return evaluate_expression(tokens, cards)

    def evaluate_restricted(
        self, set_name: TokenSequence, restriction: TokenSequence, cards: Sequence[Card]
    ) -> Optional[CardSet]:
        return evaluate_restricted(set_name, restriction, cards)

    def restriction_holds(self, restriction: TokenSequence, cards: Sequence[Card]) -> bool:
        return restriction_holds(restriction, cards)


DEFAULT_ENGINE = SetTheoryEngine()
