"""
syntax.py
=========
Grammar for cube rows, parsed into tagged nodes.

    term        := operand COMPLEMENT*
    expression  := term (OPERATOR term)*
    restriction := expression RESTRICTION expression

operand is a color or a set constant (U, ∅). The complement marker is postfix
and binds to the single term before it; there is no grouping, so
`red ∪ green ′` means red ∪ (green′). Operators associate strictly left.

Validation is a predicate used inside the search loops: it never raises and
never logs.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union

try:
    from .type import Die, Operator, Restriction, TokenKind, TokenSequence
except ImportError:  # direct execution fallback
    from type import Die, Operator, Restriction, TokenKind, TokenSequence


@dataclass(frozen=True, slots=True)
class Operand:
    die: Die


@dataclass(frozen=True, slots=True)
class Complement:
    operand: "Node"


@dataclass(frozen=True, slots=True)
class BinaryOp:
    op: Operator
    left: "Node"
    right: "Node"


@dataclass(frozen=True, slots=True)
class RestrictionClause:
    comparator: Restriction
    left: "Node"
    right: "Node"


Node = Union[Operand, Complement, BinaryOp]


def _parse_term(tokens: TokenSequence, i: int):
    """Parse operand + trailing complements starting at i. Returns (node, next_i) or (None, i)."""
    if i >= len(tokens) or not tokens[i].is_operand:
        return None, i
    node: Node = Operand(tokens[i])
    i += 1
    while i < len(tokens) and tokens[i].kind is TokenKind.COMPLEMENT:
        node = Complement(node)
        i += 1
    return node, i


def parse_expression(tokens: TokenSequence) -> Optional[Node]:
    """Build the left-associative tree for a set-name row, or None if the row is malformed."""
    node, i = _parse_term(tokens, 0)
    if node is None:
        return None
    while i < len(tokens):
        tok = tokens[i]
        if tok.kind is not TokenKind.OPERATOR:
            return None
        right, i = _parse_term(tokens, i + 1)
        if right is None:
            return None
        node = BinaryOp(Operator(tok.value), node, right)
    return node


def parse_restriction(tokens: TokenSequence) -> Optional[RestrictionClause]:
    """Split at the single restriction die and parse both sides."""
    positions = [i for i, d in enumerate(tokens) if d.kind is TokenKind.RESTRICTION]
    if len(positions) != 1:
        return None
    pos = positions[0]
    if pos == 0 or pos == len(tokens) - 1:
        return None
    left = parse_expression(tokens[:pos])
    if left is None:
        return None
    right = parse_expression(tokens[pos + 1:])
    if right is None:
        return None
    return RestrictionClause(Restriction(tokens[pos].value), left, right)


def is_valid_expression(tokens: TokenSequence) -> bool:
    return parse_expression(tokens) is not None


# Public name used by UI and analysis tooling.
is_valid_syntax = is_valid_expression


def is_valid_restriction(tokens: TokenSequence) -> bool:
    return parse_restriction(tokens) is not None


def has_restriction(tokens: TokenSequence) -> bool:
    return any(d.kind is TokenKind.RESTRICTION for d in tokens)


def pattern_string(tokens: TokenSequence) -> str:
    """Kind names joined with commas, e.g. 'color,operator,color,complement'."""
    return ",".join(d.kind.value for d in tokens)
