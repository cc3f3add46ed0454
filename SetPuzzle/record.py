"""
record.py
=========
Conversion between model values and the stored puzzle record (plain JSON).

Record layout:

    {
      "id": 1,
      "cards": [{"colors": ["red", "gold"]}, ...]   # or bitwise codes [9, ...]
      "dice": [{"type": "color", "value": "red", "id": "die-0", "isRequired": true}, ...],
      "goal": 3,
      "solution": {"topRow": "red ⊆ green", "bottomRow": "blue ∪ gold", "hasRestriction": true},
      "solutionCount": 12, "shortestSolution": 3, "longestSolution": 7
    }

Row strings are space-separated die values. Older records fuse a complement
onto its operand ("red′"); `parse_row` splits those operand-first.

Every malformed record raises RecordFormatError.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging

try:
    from .type import (
        Card, Die, DieFlag, DieJSON, InvalidCardError, InvalidDieError, Puzzle, PuzzleJSON,
        RecordFormatError, Solution, SolutionJSON, TokenKind, CardJSON,
        ALL_COLORS, ALL_OPERATORS, ALL_RESTRICTIONS, ALL_SET_CONSTANTS, BOARD_SIZE, COMPLEMENT_SYMBOL,
    )
    from .Utils.card_encoder import card_to_code, code_to_card
except ImportError:  # direct execution fallback
    from type import (
        Card, Die, DieFlag, DieJSON, InvalidCardError, InvalidDieError, Puzzle, PuzzleJSON,
        RecordFormatError, Solution, SolutionJSON, TokenKind, CardJSON,
        ALL_COLORS, ALL_OPERATORS, ALL_RESTRICTIONS, ALL_SET_CONSTANTS, BOARD_SIZE, COMPLEMENT_SYMBOL,
    )
    from Utils.card_encoder import card_to_code, code_to_card

logger = logging.getLogger(__name__)

# Die flag <-> record key
FLAG_KEYS: Dict[DieFlag, str] = {
    DieFlag.REQUIRED: "isRequired",
    DieFlag.WILD: "isWild",
    DieFlag.BONUS: "isBonus",
}

_KIND_BY_VALUE: Dict[str, TokenKind] = {
    **{c.value: TokenKind.COLOR for c in ALL_COLORS},
    **{o.value: TokenKind.OPERATOR for o in ALL_OPERATORS},
    **{s.value: TokenKind.SET_CONSTANT for s in ALL_SET_CONSTANTS},
    **{r.value: TokenKind.RESTRICTION for r in ALL_RESTRICTIONS},
    COMPLEMENT_SYMBOL: TokenKind.COMPLEMENT,
}


# -----
# Dice
# -----

def die_from_value(value: str) -> Die:
    """Die for a bare symbol ('red', '∪', '′', 'U', '⊆', ...)."""
    kind = _KIND_BY_VALUE.get(value)
    if kind is None:
        raise RecordFormatError(f"Unknown die value: {value!r}")
    return Die(kind, value)


def parse_row(text: Optional[str]) -> Tuple[Die, ...]:
    """'red′ ∪ green' -> (red, ′, ∪, green). Empty or None gives an empty row."""
    if not text:
        return ()
    dice: List[Die] = []
    for word in text.split():
        base = word.rstrip(COMPLEMENT_SYMBOL)
        if base:
            dice.append(die_from_value(base))
        dice.extend(Die.complement() for _ in range(len(word) - len(base)))
    return tuple(dice)


def die_to_json(die: Die) -> DieJSON:
    obj: DieJSON = {"type": die.kind.value, "value": die.value}
    if die.id is not None:
        obj["id"] = die.id
    if die.flag is not None:
        obj[FLAG_KEYS[die.flag]] = True
    return obj


def die_from_json(obj: Mapping[str, Any]) -> Die:
    if not isinstance(obj, Mapping):
        raise RecordFormatError(f"Die must be an object, got {obj!r}")
    try:
        kind = TokenKind(obj["type"])
        flags = [flag for flag, key in FLAG_KEYS.items() if obj.get(key)]
        if len(flags) > 1:
            raise RecordFormatError(f"Die carries more than one flag: {obj!r}")
        return Die(kind, obj["value"], flags[0] if flags else None, obj.get("id"))
    except KeyError as e:
        raise RecordFormatError(f"Die is missing field {e.args[0]!r}: {obj!r}") from e
    except (ValueError, InvalidDieError) as e:
        raise RecordFormatError(f"Invalid die {obj!r}: {e}") from e


# ------
# Cards
# ------

def card_to_json(card: Card) -> CardJSON:
    return {"colors": [c.value for c in card.sorted_colors()]}


def card_from_json(obj: Any) -> Card:
    """Accepts either {"colors": [...]} or a bitwise code 0-15."""
    try:
        if isinstance(obj, bool):
            raise RecordFormatError(f"Invalid card: {obj!r}")
        if isinstance(obj, int):
            return code_to_card(obj)
        if isinstance(obj, Mapping) and isinstance(obj.get("colors"), list):
            return Card.of(*obj["colors"])
    except InvalidCardError as e:
        raise RecordFormatError(f"Invalid card {obj!r}: {e}") from e
    raise RecordFormatError(f"Invalid card: {obj!r}")


# ---------
# Solution
# ---------

def solution_to_json(solution: Solution) -> SolutionJSON:
    return {
        "topRow": solution.top_row,
        "bottomRow": solution.bottom_row,
        "hasRestriction": solution.has_restriction,
    }


def solution_from_json(obj: Mapping[str, Any]) -> Solution:
    if not isinstance(obj, Mapping) or not isinstance(obj.get("bottomRow"), str):
        raise RecordFormatError(f"Invalid solution: {obj!r}")
    top = obj.get("topRow")
    restriction = parse_row(top) if obj.get("hasRestriction", top is not None) else ()
    return Solution(restriction, parse_row(obj["bottomRow"]))


# -------
# Puzzle
# -------

def puzzle_to_record(puzzle: Puzzle, compact_cards: bool = False) -> PuzzleJSON:
    """Plain JSON-ready dict. With compact_cards=True cards are written as bitwise codes."""
    record: PuzzleJSON = {}
    if puzzle.id is not None:
        record["id"] = puzzle.id
    if compact_cards:
        record["cards"] = [card_to_code(c) for c in puzzle.cards]
    else:
        record["cards"] = [card_to_json(c) for c in puzzle.cards]
    record["dice"] = [die_to_json(d) for d in puzzle.dice]
    record["goal"] = puzzle.goal
    record["solution"] = solution_to_json(puzzle.solution)
    if puzzle.solution_count is not None:
        record["solutionCount"] = puzzle.solution_count
    if puzzle.shortest_solution is not None:
        record["shortestSolution"] = puzzle.shortest_solution
    if puzzle.longest_solution is not None:
        record["longestSolution"] = puzzle.longest_solution
    return record


def puzzle_from_record(record: Mapping[str, Any]) -> Puzzle:
    """
    Rebuild a Puzzle from a decoded record. Solution rows come back as plain
    dice (no ids or flags); the flags live on `dice`.
    """
    if not isinstance(record, Mapping):
        raise RecordFormatError(f"Puzzle record must be an object, got {type(record).__name__}")
    for field in ("cards", "dice", "solution"):
        if isinstance(record.get(field), str):
            raise RecordFormatError(f"Field {field!r} is still encoded; decode the record first")
    missing = [f for f in ("cards", "dice", "goal", "solution") if f not in record]
    if missing:
        raise RecordFormatError(f"Puzzle record is missing fields: {missing}")
    if not isinstance(record["cards"], list) or not isinstance(record["dice"], list):
        raise RecordFormatError("Puzzle cards and dice must be lists")
    if len(record["cards"]) != BOARD_SIZE:
        raise RecordFormatError(f"Puzzle must hold {BOARD_SIZE} cards, got {len(record['cards'])}")
    goal = record["goal"]
    if isinstance(goal, bool) or not isinstance(goal, int):
        raise RecordFormatError(f"Puzzle goal must be an int, got {goal!r}")

    puzzle = Puzzle(
        cards=tuple(card_from_json(c) for c in record["cards"]),
        dice=tuple(die_from_json(d) for d in record["dice"]),
        goal=goal,
        solution=solution_from_json(record["solution"]),
        solution_count=record.get("solutionCount"),
        shortest_solution=record.get("shortestSolution"),
        longest_solution=record.get("longestSolution"),
        id=record.get("id"),
    )
    logger.debug(f"Loaded puzzle {puzzle.id}: {len(puzzle.cards)} cards, {len(puzzle.dice)} dice, goal {goal}")
    return puzzle
