"""
generator.py
============
Template-driven puzzle generation.

Overview:
---------
A template is an abstract arrangement such as

    restriction row:  color operator color restriction color
    set-name row:     color operator setName

Each word is a slot: `color`, `operator`, `setName`, `restriction` are
wildcards for any die of that kind, a trailing `′` adds a complement slot, and
a concrete symbol (`red`, `∩`, `U`, `⊆`, ...) only accepts that exact die.
`color@N` repeats the value drawn for slot N (1-based, counted from the start
of the restriction row), so `color operator color@1` reads "A ∪ A" and needs
two dice of the same color.

One generation attempt:
  1. pick a template, roll a dice pool, draw one die per slot (no reuse);
  2. deal 8 distinct cards;
  3. evaluate the instantiated solution; its size is the goal. A draw is kept
     only when that size equals a goal drawn from the weighted goal list;
  4. turn the solution into the puzzle's dice, optionally flag one of them
     (required / wild / bonus) and shuffle;
  5. ask the search engine for solution counts.

All randomness comes from the injected RandomLike, so a seed replays a batch
exactly. Attempts are bounded; a batch that runs out of attempts returns what
it has and reports the shortfall.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple
import logging

try:
    from .type import (
        Card, CardSet, Die, DieFlag, DicePoolSpec, ExpressionEngine, GeneratorConfig, Puzzle,
        RandomLike, Solution, SolutionSearch, TokenKind,
        ALL_COLORS, ALL_OPERATORS, ALL_RESTRICTIONS, ALL_SET_CONSTANTS, COMPLEMENT_SYMBOL, WEIGHTED_GOALS, BOARD_SIZE,
    )
    from .evaluator import DEFAULT_ENGINE
    from .solver import SolutionFinder
    from .Utils.card_encoder import all_cards
except ImportError:  # direct execution fallback
    from type import (
        Card, CardSet, Die, DieFlag, DicePoolSpec, ExpressionEngine, GeneratorConfig, Puzzle,
        RandomLike, Solution, SolutionSearch, TokenKind,
        ALL_COLORS, ALL_OPERATORS, ALL_RESTRICTIONS, ALL_SET_CONSTANTS, COMPLEMENT_SYMBOL, WEIGHTED_GOALS, BOARD_SIZE,
    )
    from evaluator import DEFAULT_ENGINE
    from solver import SolutionFinder
    from Utils.card_encoder import all_cards

logger = logging.getLogger(__name__)

SPECIAL_CUBE_OUTCOMES: Tuple[Optional[DieFlag], ...] = (None, DieFlag.REQUIRED, DieFlag.WILD, DieFlag.BONUS)

_WILDCARD_WORDS: Dict[str, TokenKind] = {
    "color": TokenKind.COLOR,
    "operator": TokenKind.OPERATOR,
    "setName": TokenKind.SET_CONSTANT,
    "restriction": TokenKind.RESTRICTION,
}


# ==========
# Templates
# ==========

class Slot(NamedTuple):
    """
    One position of a template row. value=None accepts any die of `kind`;
    same_as is the 0-based index of an earlier slot whose value must repeat.
    """
    kind: TokenKind
    value: Optional[str] = None
    same_as: Optional[int] = None

    def matches(self, die: Die) -> bool:
        return die.kind is self.kind and (self.value is None or die.value == self.value)


def _slot_for_word(word: str, earlier: Sequence[Slot] = ()) -> Slot:
    if "@" in word:
        name, _, ref = word.partition("@")
        slot = _slot_for_word(name)
        if not ref.isdigit() or not 1 <= int(ref) <= len(earlier):
            raise ValueError(f"Back-reference {word!r} must name an earlier slot")
        index = int(ref) - 1
        if earlier[index].kind is not slot.kind:
            raise ValueError(f"Back-reference {word!r} points at a {earlier[index].kind.value} slot")
        return slot._replace(same_as=index)
    if word in _WILDCARD_WORDS:
        return Slot(_WILDCARD_WORDS[word])
    if word == COMPLEMENT_SYMBOL:
        return Slot(TokenKind.COMPLEMENT, COMPLEMENT_SYMBOL)
    for kind, members in (
        (TokenKind.COLOR, ALL_COLORS),
        (TokenKind.OPERATOR, ALL_OPERATORS),
        (TokenKind.SET_CONSTANT, ALL_SET_CONSTANTS),
        (TokenKind.RESTRICTION, ALL_RESTRICTIONS),
    ):
        if word in {m.value for m in members}:
            return Slot(kind, word)
    raise ValueError(f"Unknown template word: {word!r}")


def parse_pattern(pattern: Optional[str], earlier: Sequence[Slot] = ()) -> Tuple[Slot, ...]:
    """
    'color operator color′' -> slots; a trailing ′ on a word adds a complement
    slot. `earlier` holds the slots of preceding rows for `@N` references.
    """
    if not pattern:
        return ()
    slots: List[Slot] = []
    for word in pattern.split():
        primes = len(word) - len(word.rstrip(COMPLEMENT_SYMBOL))
        base = word[:len(word) - primes] if primes else word
        if base:
            slots.append(_slot_for_word(base, tuple(earlier) + tuple(slots)))
        slots.extend(Slot(TokenKind.COMPLEMENT, COMPLEMENT_SYMBOL) for _ in range(primes))
    return tuple(slots)


@dataclass(frozen=True)
class Template:
    name: str
    restriction_row: Tuple[Slot, ...]
    set_name_row: Tuple[Slot, ...]

    @classmethod
    def from_patterns(cls, name: str, restriction: Optional[str], set_name: str) -> "Template":
        restriction_row = parse_pattern(restriction)
        return cls(name, restriction_row, parse_pattern(set_name, restriction_row))

    @property
    def cube_count(self) -> int:
        return len(self.restriction_row) + len(self.set_name_row)


TEMPLATES: Tuple[Template, ...] = (
    Template.from_patterns("3+5", "color restriction color", "color operator color operator setName"),
    Template.from_patterns("3+5-equals", "color = color", "color operator color operator setName"),
    Template.from_patterns("5+3", "color operator color restriction color", "color operator setName"),
    Template.from_patterns("5+3-right", "color restriction color operator color", "color operator setName"),
    Template.from_patterns("5+2", "color operator color restriction setName", "color′"),
    Template.from_patterns("6+2-reuse", "color operator color operator color@1 restriction setName", "color′"),
    Template.from_patterns("5+2-reuse", "color operator color@1 restriction color", "color′"),
    Template.from_patterns("3+4", "color restriction setName", "color′ operator color"),
    Template.from_patterns("3+4-universe", "setName restriction color", "color operator color′"),
    Template.from_patterns("4+3", "color′ restriction color", "color operator color"),
    Template.from_patterns("4+3-subset", "color′ ⊆ color", "color ∩ color"),
    Template.from_patterns("4+3-setname", "color′ restriction setName", "color operator setName"),
    Template.from_patterns("0+8", None, "color operator color operator color operator color′"),
    Template.from_patterns("0+8-lead", None, "color′ operator color operator color operator color"),
    Template.from_patterns("0+6", None, "color operator color operator setName′"),
)


# ==============
# Random inputs
# ==============

def generate_dice_pool(rng: RandomLike, spec: DicePoolSpec = DicePoolSpec()) -> List[Die]:
    """Roll a pool: colors capped per color, then operators, complements, set constants, restrictions."""
    dice: List[Die] = []
    color_counts = {c: 0 for c in ALL_COLORS}
    for _ in range(spec.colors):
        available = [c for c in ALL_COLORS if color_counts[c] < spec.max_per_color]
        if not available:
            break
        color = rng.choice(available)
        color_counts[color] += 1
        dice.append(Die.color(color))
    dice.extend(Die.operator(rng.choice(ALL_OPERATORS)) for _ in range(spec.operators))
    dice.extend(Die.complement() for _ in range(spec.complements))
    dice.extend(Die.constant(rng.choice(ALL_SET_CONSTANTS)) for _ in range(spec.set_constants))
    dice.extend(Die.restriction(rng.choice(ALL_RESTRICTIONS)) for _ in range(spec.restrictions))
    return dice


def generate_card_config(rng: RandomLike, num_cards: int = BOARD_SIZE) -> Tuple[Card, ...]:
    """`num_cards` distinct color combinations out of the 16 possible."""
    combos = all_cards()
    if not 0 < num_cards <= len(combos):
        raise ValueError(f"num_cards must be in 1..{len(combos)}, got {num_cards}")
    rng.shuffle(combos)
    return tuple(combos[:num_cards])


def pick_weighted_goal(rng: RandomLike, weighted_goals: Sequence[int] = WEIGHTED_GOALS) -> int:
    return rng.choice(list(weighted_goals))


# ======================
# Template instantiation
# ======================

def instantiate_template(template: Template, available_dice: Sequence[Die], rng: RandomLike) -> Optional[Solution]:
    """
    Fill every slot with a matching die drawn from the pool, without reuse.
    A back-referencing slot needs another die with the referenced value.
    Returns None when the pool runs out of a needed kind or value.
    """
    remaining = list(available_dice)
    chosen: List[Die] = []
    rows: List[Tuple[Die, ...]] = []
    for row in (template.restriction_row, template.set_name_row):
        picked: List[Die] = []
        for slot in row:
            wanted = slot.value if slot.same_as is None else chosen[slot.same_as].value
            candidates = [i for i, d in enumerate(remaining) if slot.matches(d) and d.value == (wanted or d.value)]
            if not candidates:
                logger.debug(f"Template {template.name} needs another {wanted or slot.kind.value} die")
                return None
            die = remaining.pop(rng.choice(candidates))
            picked.append(die)
            chosen.append(die)
        rows.append(tuple(picked))
    return Solution(rows[0], rows[1])


def evaluate_solution(
    solution: Solution, cards: Sequence[Card], engine: ExpressionEngine = DEFAULT_ENGINE
) -> Optional[CardSet]:
    """
    Cards matched by an instantiated solution, or None when a row is malformed
    or the restriction does not hold on these cards.
    """
    if not engine.is_valid_expression(solution.set_name_dice):
        return None
    if not solution.has_restriction:
        return engine.evaluate(solution.set_name_dice, cards)
    if not engine.is_valid_restriction(solution.restriction_dice):
        return None
    return engine.evaluate_restricted(solution.set_name_dice, solution.restriction_dice, cards)


def generate_dice_from_solution(solution: Solution) -> Tuple[Die, ...]:
    """
    Fresh dice, one per token of the solution (restriction row first), ids
    'die-0', 'die-1', ... An operand keeps its complement die right after it.
    """
    return tuple(
        replace(die, id=f"die-{n}", flag=None)
        for n, die in enumerate(solution.all_dice())
    )


def assign_special_cube(
    dice: Sequence[Die], rng: RandomLike, solution_ids: Optional[Sequence[str]] = None
) -> Tuple[Die, ...]:
    """
    Pick uniformly among none/required/wild/bonus; unless none, flag exactly one
    die. Only dice whose id is in `solution_ids` are eligible (all dice when None).
    """
    dice = tuple(dice)
    outcome = rng.choice(SPECIAL_CUBE_OUTCOMES)
    if outcome is None:
        return dice
    eligible = [i for i, d in enumerate(dice) if solution_ids is None or d.id in solution_ids]
    if not eligible:
        return dice
    target = rng.choice(eligible)
    logger.debug(f"Flagging die {dice[target].value} ({dice[target].id}) as {outcome.value}")
    return tuple(replace(d, flag=outcome) if i == target else d for i, d in enumerate(dice))


def estimate_difficulty(cube_count: int) -> str:
    if cube_count <= 5:
        return "beginner"
    if cube_count <= 7:
        return "intermediate"
    return "advanced"


# ==========
# Generator
# ==========

class BatchResult(NamedTuple):
    puzzles: Tuple[Puzzle, ...]
    attempts: int
    shortfall: int


class PuzzleGenerator:
    """
    Builds puzzles from the template catalogue. Engine, search and random
    source are injected; nothing here reads global state.
    """

    def __init__(
        self,
        rng: RandomLike,
        engine: ExpressionEngine = DEFAULT_ENGINE,
        search: Optional[SolutionSearch] = None,
        config: GeneratorConfig = GeneratorConfig(),
        templates: Sequence[Template] = TEMPLATES,
    ):
        if not templates:
            raise ValueError("at least one template is required")
        self.rng = rng
        self.engine = engine
        self.search = search if search is not None else SolutionFinder(engine)
        self.config = config
        self.templates = tuple(templates)
        logger.info(f"PuzzleGenerator ready with {len(self.templates)} templates")

    def attempt(self) -> Optional[Puzzle]:
        """One draw. Returns None when the draw is rejected for any reason."""
        cfg = self.config
        rng = self.rng
        template = rng.choice(self.templates)
        pool = generate_dice_pool(rng, cfg.pool)
        solution = instantiate_template(template, pool, rng)
        if solution is None:
            return None

        cards = generate_card_config(rng)
        matching = evaluate_solution(solution, cards, self.engine)
        if matching is None:
            logger.debug(f"Template {template.name}: restriction fails on dealt cards")
            return None
        target = pick_weighted_goal(rng, cfg.weighted_goals)
        goal = len(matching)
        if goal != target:
            return None

        dice = generate_dice_from_solution(solution)
        if cfg.assign_special_cube:
            dice = assign_special_cube(dice, rng)
        split = len(solution.restriction_dice)
        solution = Solution(dice[:split], dice[split:])
        puzzle_dice = list(dice)
        if cfg.shuffle_dice:
            rng.shuffle(puzzle_dice)

        shortest = None
        if cfg.min_shortest_cubes:
            best = self.search.find_shortest_solution(cards, puzzle_dice, goal)
            if best is None or best.cube_count < cfg.min_shortest_cubes:
                logger.debug(f"Template {template.name}: shortest solution too short, rejecting")
                return None
            shortest = best.cube_count

        count = longest = None
        if cfg.count_solutions:
            counts = self.search.count_all_solutions(cards, puzzle_dice, goal)
            count, shortest, longest = counts.total_solutions, counts.shortest_cube_count, counts.longest_cube_count

        logger.debug(f"Accepted template {template.name} with goal {goal}: {solution.canonical}")
        return Puzzle(
            cards=cards,
            dice=tuple(puzzle_dice),
            goal=goal,
            solution=solution,
            solution_count=count,
            shortest_solution=shortest,
            longest_solution=longest,
            template=template.name,
        )

    def generate_puzzle(self) -> Optional[Puzzle]:
        for n in range(1, self.config.max_attempts_per_puzzle + 1):
            puzzle = self.attempt()
            if puzzle is not None:
                logger.info(f"Generated puzzle after {n} attempts (goal={puzzle.goal}, template={puzzle.template})")
                return puzzle
        logger.warning(f"No puzzle accepted after {self.config.max_attempts_per_puzzle} attempts")
        return None

    def generate_batch(self, count: int) -> BatchResult:
        """Generate up to `count` puzzles, numbered from 1, within the attempt ceiling."""
        ceiling = self.config.max_total_attempts or count * self.config.max_attempts_per_puzzle
        logger.info(f"Generating {count} puzzles (attempt ceiling {ceiling})")
        puzzles: List[Puzzle] = []
        attempts = 0
        while len(puzzles) < count and attempts < ceiling:
            attempts += 1
            puzzle = self.attempt()
            if puzzle is None:
                continue
            puzzles.append(replace(puzzle, id=len(puzzles) + 1))
            if len(puzzles) % 50 == 0:
                logger.info(f"[{len(puzzles)}/{count}] puzzles after {attempts} attempts")

        shortfall = count - len(puzzles)
        if shortfall:
            logger.warning(f"Only generated {len(puzzles)}/{count} puzzles; attempt ceiling {ceiling} reached")
        else:
            logger.info(f"Generated {count} puzzles in {attempts} attempts")
        return BatchResult(tuple(puzzles), attempts, shortfall)
