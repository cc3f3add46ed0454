"""Plain-text puzzle summary, rendered with Jinja2 from templates/puzzle_summary.j2."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

try:
    from ..type import Puzzle
    from ..evaluator import calculate_score, evaluate_expression, evaluate_restricted
    from ..generator import estimate_difficulty
except ImportError:  # direct execution fallback
    from type import Puzzle
    from evaluator import calculate_score, evaluate_expression, evaluate_restricted
    from generator import estimate_difficulty

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")
SUMMARY_TEMPLATE = "puzzle_summary.j2"
RULE_WIDTH = 60

_env: Optional[Environment] = None


def _environment() -> Environment:
    global _env
    if _env is None:
        _env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            trim_blocks=True,
            lstrip_blocks=True,
        )
    return _env


def _matched_indices(puzzle: Puzzle) -> frozenset:
    solution = puzzle.solution
    if solution.has_restriction:
        result = evaluate_restricted(solution.set_name_dice, solution.restriction_dice, puzzle.cards)
        return result if result is not None else frozenset()
    return evaluate_expression(solution.set_name_dice, puzzle.cards)


def summary_context(puzzle: Puzzle, show_solution: bool = True) -> Dict[str, Any]:
    """Template variables for one puzzle."""
    matched = _matched_indices(puzzle) if show_solution else frozenset()
    cube_count = puzzle.shortest_solution or puzzle.solution.cube_count
    return {
        "id": puzzle.id,
        "template": puzzle.template,
        "width": RULE_WIDTH,
        "goal": puzzle.goal,
        "solution_count": puzzle.solution_count,
        "shortest": puzzle.shortest_solution,
        "longest": puzzle.longest_solution,
        "difficulty": estimate_difficulty(cube_count),
        "cards": [
            {"colors": [c.value for c in card.sorted_colors()], "matched": i in matched}
            for i, card in enumerate(puzzle.cards)
        ],
        "dice": [{"value": d.value, "flag": d.flag.value if d.flag else None} for d in puzzle.dice],
        "show_solution": show_solution,
        "cube_count": puzzle.solution.cube_count,
        "score": calculate_score(puzzle.solution.all_dice()),
        "top_row": puzzle.solution.top_row,
        "bottom_row": puzzle.solution.bottom_row,
    }


def render_summary(puzzle: Puzzle, show_solution: bool = True) -> str:
    logger.debug(f"Rendering summary for puzzle {puzzle.id}")
    tmpl = _environment().get_template(SUMMARY_TEMPLATE)
    return tmpl.render(**summary_context(puzzle, show_solution))


def render_batch(puzzles: Sequence[Puzzle], show_solution: bool = True) -> str:
    return "\n".join(render_summary(p, show_solution) for p in puzzles)
