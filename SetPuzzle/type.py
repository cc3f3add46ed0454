"""
type.py
========
Core type objects and lightweight value classes for the set-theory cube puzzle.

Design goals
------------
- Deterministic & replayable: randomness only enters through a RandomLike source.
- Safety: frozen dataclasses / Enums; explicit error types; clear invariants.
- Minimal but complete: just the primitives, no search, no I/O.

Key invariants
--------------
- A Card holds a subset of the four colors; a puzzle board holds exactly 8 cards.
- A Die carries at most one flag (required / wild / bonus); flags never change
  what an expression evaluates to.
- A Solution is two ordered rows of dice: an optional restriction row and a
  set-name row. Its canonical string is used to deduplicate arrangements.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import (
    FrozenSet, Iterable, List, Literal, NamedTuple, Optional, Protocol, Sequence,
    Tuple, TypedDict, Union, runtime_checkable
)


class PuzzleError(Exception):
    """Base error for model and contract violations."""


class InvalidCardError(PuzzleError):
    """Raised when a Card is built from unknown or duplicate colors."""


class InvalidDieError(PuzzleError):
    """Raised when a Die has a value that does not belong to its kind."""


class MalformedInputError(PuzzleError):
    """
    Raised when a caller hands the engine inputs that break its basic shape
    contract (e.g. fewer than two dice, no cards, foreign objects in a pool).
    """


class InvalidExpressionError(PuzzleError):
    """Raised when evaluation is requested for a sequence the validator rejects."""


class RecordFormatError(PuzzleError):
    """Raised when a stored puzzle record cannot be decoded into model values."""


__all__ = [
    # Enums
    "Color", "TokenKind", "Operator", "SetConstant", "Restriction", "DieFlag",
    # Core values
    "Card", "Die", "Solution", "Puzzle", "SolutionCount",
    # Aliases & helpers
    "TokenSequence", "CardSet", "canonical_string",
    # Policies & settings
    "DicePoolSpec", "GeneratorConfig",
    # Protocols
    "RandomLike", "ExpressionEngine", "SolutionSearch",
    # JSON shapes
    "CardJSON", "DieJSON", "SolutionJSON", "PuzzleJSON",
    # Errors
    "PuzzleError", "InvalidCardError", "InvalidDieError", "MalformedInputError",
    "InvalidExpressionError", "RecordFormatError",
    # Constants
    "BOARD_SIZE", "MIN_SEARCH_DICE", "WEIGHTED_GOALS", "ALL_COLORS", "ALL_OPERATORS",
    "ALL_SET_CONSTANTS", "ALL_RESTRICTIONS", "COMPLEMENT_SYMBOL", "ROW_SEPARATOR",
]


# ---------- Enums ----------

class Color(Enum):
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    GOLD = "gold"


class TokenKind(Enum):
    COLOR = "color"
    OPERATOR = "operator"
    COMPLEMENT = "complement"
    SET_CONSTANT = "set-constant"
    RESTRICTION = "restriction"


class Operator(Enum):
    UNION = "∪"
    INTERSECTION = "∩"
    DIFFERENCE = "−"


class SetConstant(Enum):
    UNIVERSE = "U"
    EMPTY = "∅"


class Restriction(Enum):
    EQUALS = "="
    SUBSET = "⊆"


class DieFlag(Enum):
    REQUIRED = "required"
    WILD = "wild"
    BONUS = "bonus"


ALL_COLORS: Tuple[Color, ...] = (Color.RED, Color.BLUE, Color.GREEN, Color.GOLD)
ALL_OPERATORS: Tuple[Operator, ...] = (Operator.UNION, Operator.INTERSECTION, Operator.DIFFERENCE)
ALL_SET_CONSTANTS: Tuple[SetConstant, ...] = (SetConstant.UNIVERSE, SetConstant.EMPTY)
ALL_RESTRICTIONS: Tuple[Restriction, ...] = (Restriction.EQUALS, Restriction.SUBSET)
COMPLEMENT_SYMBOL: str = "′"
ROW_SEPARATOR: str = " | "

BOARD_SIZE: int = 8
MIN_SEARCH_DICE: int = 2

# Goal draw for generated puzzles; small goals are more common
WEIGHTED_GOALS: Tuple[int, ...] = (1, 1, 1, 2, 2, 2, 2, 3, 3, 3, 3, 4, 4, 4, 4, 5, 5, 5, 6, 6, 7)

_VALUES_BY_KIND = {
    TokenKind.COLOR: frozenset(c.value for c in ALL_COLORS),
    TokenKind.OPERATOR: frozenset(o.value for o in ALL_OPERATORS),
    TokenKind.COMPLEMENT: frozenset({COMPLEMENT_SYMBOL}),
    TokenKind.SET_CONSTANT: frozenset(s.value for s in ALL_SET_CONSTANTS),
    TokenKind.RESTRICTION: frozenset(r.value for r in ALL_RESTRICTIONS),
}


# ---------- Core values ----------

@dataclass(frozen=True, slots=True)
class Card:
    """
    Immutable card value: the set of colors printed on it.
    Cards carry no identifier; a card's identity inside a puzzle is its index.
    """
    colors: FrozenSet[Color]

    def __post_init__(self):
        if not all(isinstance(c, Color) for c in self.colors):
            raise InvalidCardError(f"Card colors must be Color members, got {self.colors!r}")

    @classmethod
    def of(cls, *colors: Union[Color, str]) -> "Card":
        """Build a card from Color members or their names ('red', 'gold', ...)."""
        parsed: List[Color] = []
        for c in colors:
            try:
                color = c if isinstance(c, Color) else Color(c)
            except ValueError as e:
                raise InvalidCardError(f"Unknown color: {c!r}") from e
            if color in parsed:
                raise InvalidCardError(f"Duplicate color on card: {color.value}")
            parsed.append(color)
        return cls(frozenset(parsed))

    def has(self, color: Color) -> bool:
        return color in self.colors

    def sorted_colors(self) -> Tuple[Color, ...]:
        """Colors in palette order, for stable display and serialisation."""
        return tuple(c for c in ALL_COLORS if c in self.colors)


@dataclass(frozen=True, slots=True)
class Die:
    """
    One cube. `value` is the display symbol ('red', '∪', '′', 'U', '⊆', ...).

    Equality compares kind, value, flag and id: two plain red dice are equal,
    a flagged or numbered red die is not equal to a plain one. The search
    engine tells pieces apart by their position in the pool, never by equality.
    """
    kind: TokenKind
    value: str
    flag: Optional[DieFlag] = None
    id: Optional[str] = None

    def __post_init__(self):
        if self.value not in _VALUES_BY_KIND[self.kind]:
            raise InvalidDieError(f"Value {self.value!r} is not a {self.kind.value} die")

    @property
    def is_operand(self) -> bool:
        return self.kind in (TokenKind.COLOR, TokenKind.SET_CONSTANT)

    @classmethod
    def color(cls, color: Union[Color, str], **kw) -> "Die":
        return cls(TokenKind.COLOR, Color(color).value, **kw)

    @classmethod
    def operator(cls, op: Union[Operator, str], **kw) -> "Die":
        return cls(TokenKind.OPERATOR, Operator(op).value, **kw)

    @classmethod
    def complement(cls, **kw) -> "Die":
        return cls(TokenKind.COMPLEMENT, COMPLEMENT_SYMBOL, **kw)

    @classmethod
    def constant(cls, const: Union[SetConstant, str], **kw) -> "Die":
        return cls(TokenKind.SET_CONSTANT, SetConstant(const).value, **kw)

    @classmethod
    def restriction(cls, r: Union[Restriction, str], **kw) -> "Die":
        return cls(TokenKind.RESTRICTION, Restriction(r).value, **kw)


TokenSequence = Sequence[Die]
CardSet = FrozenSet[int]  # card indices


def canonical_string(tokens: Iterable[Die]) -> str:
    """Space-joined values of a row, e.g. 'red ∪ green ′'."""
    return " ".join(d.value for d in tokens)


@dataclass(frozen=True, slots=True)
class Solution:
    """
    A full arrangement: optional restriction row plus the set-name row.
    An empty restriction row means "no restriction".
    """
    restriction_dice: Tuple[Die, ...]
    set_name_dice: Tuple[Die, ...]

    @property
    def has_restriction(self) -> bool:
        return len(self.restriction_dice) > 0

    @property
    def cube_count(self) -> int:
        return len(self.restriction_dice) + len(self.set_name_dice)

    @property
    def top_row(self) -> Optional[str]:
        return canonical_string(self.restriction_dice) if self.has_restriction else None

    @property
    def bottom_row(self) -> str:
        return canonical_string(self.set_name_dice)

    @property
    def canonical(self) -> str:
        if self.has_restriction:
            return f"{self.top_row}{ROW_SEPARATOR}{self.bottom_row}"
        return self.bottom_row

    def all_dice(self) -> Tuple[Die, ...]:
        return self.restriction_dice + self.set_name_dice


class SolutionCount(NamedTuple):
    """
    Result of an exhaustive count.
    shortest/longest are None when no solution exists.
    """
    total_solutions: int
    shortest_cube_count: Optional[int]
    longest_cube_count: Optional[int]
    elapsed_ms: float = 0.0


@dataclass(frozen=True, slots=True)
class Puzzle:
    """
    A finished puzzle. `goal` is always the size of what `solution` evaluates
    to over `cards`; it is never chosen independently.
    """
    cards: Tuple[Card, ...]
    dice: Tuple[Die, ...]
    goal: int
    solution: Solution
    solution_count: Optional[int] = None
    shortest_solution: Optional[int] = None
    longest_solution: Optional[int] = None
    template: Optional[str] = None
    id: Optional[int] = None


# ---------- Policies & settings ----------

class DicePoolSpec(NamedTuple):
    """
    How many dice of each kind the generator rolls before instantiating a
    template. `max_per_color` caps repeats of a single color.
    """
    colors: int = 4
    max_per_color: int = 2
    operators: int = 3
    complements: int = 1
    set_constants: int = 2
    restrictions: int = 1


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    """
    Static configuration for the puzzle generator.

    max_attempts_per_puzzle:
        Template/card draws tried before `generate_puzzle` gives up.
    max_total_attempts:
        Ceiling for a whole batch; None means count * max_attempts_per_puzzle.
    count_solutions:
        Fill solution_count / shortest / longest via the search engine.
    min_shortest_cubes:
        Reject puzzles whose shortest solution uses fewer cubes (0 disables).
    weighted_goals:
        Target goal is drawn from this list; a draw is accepted only when the
        instantiated solution evaluates to exactly that many cards.
    """
    max_attempts_per_puzzle: int = 100
    max_total_attempts: Optional[int] = None
    pool: DicePoolSpec = DicePoolSpec()
    count_solutions: bool = True
    min_shortest_cubes: int = 0
    assign_special_cube: bool = True
    shuffle_dice: bool = True
    weighted_goals: Tuple[int, ...] = WEIGHTED_GOALS


# ---------- JSON shapes ----------

class CardJSON(TypedDict):
    colors: List[Literal["red", "blue", "green", "gold"]]


class _DieJSONBase(TypedDict):
    type: Literal["color", "operator", "complement", "set-constant", "restriction"]
    value: str


class DieJSON(_DieJSONBase, total=False):
    id: str
    isRequired: bool
    isWild: bool
    isBonus: bool


class SolutionJSON(TypedDict):
    topRow: Optional[str]
    bottomRow: str
    hasRestriction: bool


class PuzzleJSON(TypedDict, total=False):
    id: int
    cards: Union[List[CardJSON], List[int], str]
    dice: Union[List[DieJSON], str]
    goal: int
    solution: Union[SolutionJSON, str]
    solutionCount: Optional[int]
    shortestSolution: Optional[int]
    longestSolution: Optional[int]


# ---------- Protocols ----------

@runtime_checkable
class RandomLike(Protocol):
    """
    Minimal interface expected from RNG providers.
    Implemented by 'random.Random'.
    """
    def shuffle(self, x: list) -> None: ...
    def randint(self, a: int, b: int) -> int: ...  # inclusive
    def choice(self, seq: Sequence): ...


@runtime_checkable
class ExpressionEngine(Protocol):
    """
    Validator + evaluator contract consumed by the solver and the generator.
    """
    def is_valid_expression(self, tokens: TokenSequence) -> bool: ...
    def is_valid_restriction(self, tokens: TokenSequence) -> bool: ...
    def evaluate(self, tokens: TokenSequence, cards: Sequence[Card]) -> CardSet: ...
    def evaluate_restricted(
        self, set_name: TokenSequence, restriction: TokenSequence, cards: Sequence[Card]
    ) -> Optional[CardSet]: ...
    def restriction_holds(self, restriction: TokenSequence, cards: Sequence[Card]) -> bool: ...


@runtime_checkable
class SolutionSearch(Protocol):
    """
    Search contract consumed by the generator.
    """
    def find_shortest_solution(
        self, cards: Sequence[Card], dice: Sequence[Die], goal: int
    ) -> Optional[Solution]: ...
    def count_all_solutions(
        self, cards: Sequence[Card], dice: Sequence[Die], goal: int, allow_complement: bool = True
    ) -> SolutionCount: ...
    def has_possible_solution(self, cards: Sequence[Card], dice: Sequence[Die], goal: int) -> bool: ...
