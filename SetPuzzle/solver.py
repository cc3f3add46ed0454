"""
solver.py
=========
Brute-force solution search over a dice pool.

For every subset size k = 2..len(dice), every k-combination of the pool is
tried (a) as a plain set-name row in every order and (b), for k >= 3, split
into a restriction row of size 2..k-1 and a set-name row made of the rest,
each side permuted independently. An arrangement is a solution when it is
syntactically valid and evaluates to exactly `goal` cards. Arrangements are
keyed by their canonical string, so two red dice swapped is one solution.

Worst case is O(2^n * n!) for n dice; puzzles never exceed 8 dice.

Shortest solution: the first one found. Combinations grow in size, so it has
the minimum cube count; among equal-length ties the winner depends only on
enumeration order and carries no meaning.
"""

from __future__ import annotations

from itertools import combinations, permutations
from typing import Iterator, List, Optional, Sequence, Set, Tuple
import logging
import time

try:
    from .type import (
        Card, Die, DieFlag, ExpressionEngine, MalformedInputError, Solution, SolutionCount,
        TokenKind, canonical_string, MIN_SEARCH_DICE, ROW_SEPARATOR,
    )
    from .evaluator import DEFAULT_ENGINE
except ImportError:  # direct execution fallback
    from type import (
        Card, Die, DieFlag, ExpressionEngine, MalformedInputError, Solution, SolutionCount,
        TokenKind, canonical_string, MIN_SEARCH_DICE, ROW_SEPARATOR,
    )
    from evaluator import DEFAULT_ENGINE

logger = logging.getLogger(__name__)


def _check_inputs(cards: Sequence[Card], dice: Sequence[Die]) -> Tuple[Tuple[Card, ...], Tuple[Die, ...]]:
    board = tuple(cards)
    pool = tuple(dice)
    if not board:
        raise MalformedInputError("at least one card is required")
    if not all(isinstance(c, Card) for c in board):
        raise MalformedInputError("cards must be Card values")
    if not all(isinstance(d, Die) for d in pool):
        raise MalformedInputError("dice must be Die values")
    if len(pool) < MIN_SEARCH_DICE:
        raise MalformedInputError(f"at least {MIN_SEARCH_DICE} dice are required, got {len(pool)}")
    return board, pool


def _count_restrictions(dice: Sequence[Die]) -> int:
    return sum(1 for d in dice if d.kind is TokenKind.RESTRICTION)


class SolutionFinder:
    """
    Search engine. The validator/evaluator is injected so analysis tooling can
    swap in an instrumented engine; the default is the plain set-theory one.
    """

    def __init__(self, engine: ExpressionEngine = DEFAULT_ENGINE):
        self.engine = engine

    # -------
    # Core
    # -------
    def iter_solutions(self, cards: Sequence[Card], dice: Sequence[Die], goal: int) -> Iterator[Solution]:
        """
        Yield each distinct solution once, in enumeration order (non-decreasing
        cube count). When a die is flagged `required`, only arrangements that
        use that die are considered.
        """
        board, pool = _check_inputs(cards, dice)
        engine = self.engine
        required = next((i for i, d in enumerate(pool) if d.flag is DieFlag.REQUIRED), None)
        checked: Set[str] = set()

        for k in range(MIN_SEARCH_DICE, len(pool) + 1):
            for combo in combinations(range(len(pool)), k):
                if required is not None and required not in combo:
                    continue
                chosen = [pool[i] for i in combo]
                n_restrictions = _count_restrictions(chosen)

                # (a) the whole combination as a set-name row
                if n_restrictions == 0:
                    for perm in permutations(chosen):
                        key = canonical_string(perm)
                        if key in checked:
                            continue
                        checked.add(key)
                        if not engine.is_valid_expression(perm):
                            continue
                        if len(engine.evaluate(perm, board)) == goal:
                            yield Solution((), tuple(perm))

                # (b) restriction row + set-name row; needs the single restriction die on the restriction side
                if k < 3 or n_restrictions != 1:
                    continue
                for r_size in range(2, k):
                    for r_idx in combinations(range(k), r_size):
                        r_dice = [chosen[i] for i in r_idx]
                        if _count_restrictions(r_dice) != 1:
                            continue
                        s_dice = [chosen[i] for i in range(k) if i not in r_idx]
                        yield from self._split_solutions(board, goal, r_dice, s_dice, checked)

    def _split_solutions(
        self,
        board: Tuple[Card, ...],
        goal: int,
        r_dice: List[Die],
        s_dice: List[Die],
        checked: Set[str],
    ) -> Iterator[Solution]:
        engine = self.engine
        tried_restrictions: Set[str] = set()
        for r_perm in permutations(r_dice):
            r_key = canonical_string(r_perm)
            if r_key in tried_restrictions:
                continue
            tried_restrictions.add(r_key)
            if not engine.is_valid_restriction(r_perm):
                continue
            # A failing restriction rejects every set-name row paired with it
            if not engine.restriction_holds(r_perm, board):
                continue
            for s_perm in permutations(s_dice):
                key = f"{r_key}{ROW_SEPARATOR}{canonical_string(s_perm)}"
                if key in checked:
                    continue
                checked.add(key)
                if not engine.is_valid_expression(s_perm):
                    continue
                result = engine.evaluate_restricted(s_perm, r_perm, board)
                if result is not None and len(result) == goal:
                    yield Solution(tuple(r_perm), tuple(s_perm))

    # ---------
    # Queries
    # ---------
    def find_shortest_solution(self, cards: Sequence[Card], dice: Sequence[Die], goal: int) -> Optional[Solution]:
        logger.debug(f"Searching shortest solution: {len(dice)} dice, goal={goal}")
        solution = next(self.iter_solutions(cards, dice, goal), None)
        if solution is None:
            logger.debug("No solution exists")
        else:
            logger.debug(f"Shortest solution: {solution.canonical} ({solution.cube_count} cubes)")
        return solution

    def has_possible_solution(self, cards: Sequence[Card], dice: Sequence[Die], goal: int) -> bool:
        start = time.perf_counter()
        found = next(self.iter_solutions(cards, dice, goal), None) is not None
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(f"Solution {'found' if found else 'not found'} for goal={goal} in {elapsed:.1f}ms")
        return found

    def count_all_solutions(
        self,
        cards: Sequence[Card],
        dice: Sequence[Die],
        goal: int,
        allow_complement: bool = True,
    ) -> SolutionCount:
        """
        Exhaustively count distinct solutions. With allow_complement=False every
        complement die is removed from the pool first, which is how a puzzle is
        checked for needing its complement die.
        """
        _check_inputs(cards, dice)
        pool = list(dice)
        if not allow_complement:
            pool = [d for d in pool if d.kind is not TokenKind.COMPLEMENT]
        start = time.perf_counter()

        total = 0
        shortest: Optional[int] = None
        longest: Optional[int] = None
        if len(pool) >= MIN_SEARCH_DICE:
            for solution in self.iter_solutions(cards, pool, goal):
                total += 1
                if shortest is None:
                    shortest = solution.cube_count
                longest = solution.cube_count

        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            f"Counted {total} solutions for goal={goal} over {len(pool)} dice "
            f"(shortest={shortest}, longest={longest}) in {elapsed:.1f}ms"
        )
        return SolutionCount(total, shortest, longest, elapsed)

    def is_complement_required(self, cards: Sequence[Card], dice: Sequence[Die], goal: int) -> bool:
        """True when the puzzle is solvable, but only with its complement die."""
        with_complement = self.count_all_solutions(cards, dice, goal, allow_complement=True)
        if with_complement.total_solutions == 0:
            return False
        without = self.count_all_solutions(cards, dice, goal, allow_complement=False)
        return without.total_solutions == 0


DEFAULT_FINDER = SolutionFinder()


def find_shortest_solution(cards: Sequence[Card], dice: Sequence[Die], goal: int) -> Optional[Solution]:
    return DEFAULT_FINDER.find_shortest_solution(cards, dice, goal)


def count_all_solutions(
    cards: Sequence[Card], dice: Sequence[Die], goal: int, allow_complement: bool = True
) -> SolutionCount:
    return DEFAULT_FINDER.count_all_solutions(cards, dice, goal, allow_complement)


def has_possible_solution(cards: Sequence[Card], dice: Sequence[Die], goal: int) -> bool:
    return DEFAULT_FINDER.has_possible_solution(cards, dice, goal)
