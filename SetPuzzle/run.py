"""
run.py
======
Command-line entry point for generating, counting and inspecting puzzles.

    python -m SetPuzzle.run generate --count 20 --seed 7 --output puzzles.json --encode
    python -m SetPuzzle.run count --input puzzles.json --id 3
    python -m SetPuzzle.run show --input puzzles.json --id 3

Settings come from the environment (a `.env` file is loaded first) and are
overridden by flags: SETPUZZLE_SEED, SETPUZZLE_MAX_ATTEMPTS,
SETPUZZLE_LOG_LEVEL, SETPUZZLE_LOG_FILE.
"""

import argparse
import json
import logging
import os
import random
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

try:
    # Prefer explicit import path for package execution
    from .type import GeneratorConfig, PuzzleError
    from .generator import PuzzleGenerator
    from .solver import SolutionFinder
    from .record import puzzle_from_record, puzzle_to_record
    from .codec import decode_puzzle, encode_puzzle
    from .Utils.render_board import render_batch
except ImportError:  # direct execution fallback
    from type import GeneratorConfig, PuzzleError
    from generator import PuzzleGenerator
    from solver import SolutionFinder
    from record import puzzle_from_record, puzzle_to_record
    from codec import decode_puzzle, encode_puzzle
    from Utils.render_board import render_batch

# Set ENABLE_LOGGING = True to enable logging, False to disable
ENABLE_LOGGING = True

logger = logging.getLogger(__name__)


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None):
    """Configure logging for the command-line tools."""
    if not ENABLE_LOGGING:
        logging.disable(logging.CRITICAL)
        return
    level = (level or os.getenv("SETPUZZLE_LOG_LEVEL") or "INFO").upper()
    log_file = log_file or os.getenv("SETPUZZLE_LOG_FILE")
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _load_records(path: str) -> List[Dict[str, Any]]:
    """Read one record or a list of records, decoding obfuscated fields."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    records = data if isinstance(data, list) else [data]
    return [decode_puzzle(r) for r in records]


def _select(records: List[Dict[str, Any]], puzzle_id: Optional[int]) -> List[Dict[str, Any]]:
    if puzzle_id is None:
        return records
    chosen = [r for r in records if r.get("id") == puzzle_id]
    if not chosen:
        raise ValueError(f"Puzzle #{puzzle_id} not found")
    return chosen


def _write_json(payload: Any, output: Optional[str]):
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        logger.info(f"Wrote {output}")
    else:
        print(text)


# ---------
# Commands
# ---------

def cmd_generate(args) -> int:
    seed = args.seed if args.seed is not None else _env_int("SETPUZZLE_SEED")
    max_attempts = args.max_attempts or _env_int("SETPUZZLE_MAX_ATTEMPTS") or GeneratorConfig().max_attempts_per_puzzle
    config = GeneratorConfig(
        max_attempts_per_puzzle=max_attempts,
        max_total_attempts=args.max_total_attempts,
        count_solutions=not args.no_count,
        min_shortest_cubes=args.min_shortest,
    )
    logger.info(f"Generating {args.count} puzzles (seed={seed}, max_attempts={max_attempts})")
    generator = PuzzleGenerator(random.Random(seed), config=config)
    batch = generator.generate_batch(args.count)

    if args.summary:
        print(render_batch(batch.puzzles))
        return 0 if not batch.shortfall else 1

    records = [puzzle_to_record(p, compact_cards=args.compact_cards) for p in batch.puzzles]
    if args.encode:
        records = [encode_puzzle(r) for r in records]
    _write_json(records, args.output)
    if batch.shortfall:
        print(f"Error: only {len(batch.puzzles)}/{args.count} puzzles generated in {batch.attempts} attempts",
              file=sys.stderr)
        return 1
    return 0


def cmd_count(args) -> int:
    finder = SolutionFinder()
    results = []
    for record in _select(_load_records(args.input), args.id):
        puzzle = puzzle_from_record(record)
        counts = finder.count_all_solutions(
            puzzle.cards, puzzle.dice, puzzle.goal, allow_complement=not args.no_complement
        )
        results.append({
            "id": puzzle.id,
            "goal": puzzle.goal,
            "solutionCount": counts.total_solutions,
            "shortestSolution": counts.shortest_cube_count,
            "longestSolution": counts.longest_cube_count,
            "elapsedMs": round(counts.elapsed_ms, 1),
        })
    _write_json(results, args.output)
    return 0


def cmd_show(args) -> int:
    puzzles = [puzzle_from_record(r) for r in _select(_load_records(args.input), args.id)]
    print(render_batch(puzzles, show_solution=not args.hide_solution))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate and analyse set-theory cube puzzles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Ten puzzles, reproducible, obfuscated for shipping
  python -m SetPuzzle.run generate --count 10 --seed 42 --encode --output puzzles.json

  # Recount solutions for one stored puzzle
  python -m SetPuzzle.run count --input puzzles.json --id 3

  # Is the complement die needed?
  python -m SetPuzzle.run count --input puzzles.json --no-complement

  # Human-readable summary
  python -m SetPuzzle.run show --input puzzles.json --id 3
        """
    )
    parser.add_argument("--log-level", type=str, help="Logging level (default: SETPUZZLE_LOG_LEVEL or INFO)")
    parser.add_argument("--log-file", type=str, help="Also write logs to this file (default: SETPUZZLE_LOG_FILE)")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a batch of puzzles")
    gen.add_argument("--count", type=int, default=1, help="Number of puzzles (default: 1)")
    gen.add_argument("--seed", type=int, help="Random seed for reproducible batches")
    gen.add_argument("--max-attempts", type=int, help="Attempts per puzzle (default: SETPUZZLE_MAX_ATTEMPTS or 100)")
    gen.add_argument("--max-total-attempts", type=int, help="Attempt ceiling for the whole batch")
    gen.add_argument("--min-shortest", type=int, default=0, help="Reject puzzles solvable with fewer cubes")
    gen.add_argument("--no-count", action="store_true", help="Skip exhaustive solution counting")
    gen.add_argument("--compact-cards", action="store_true", help="Write cards as bitwise codes")
    gen.add_argument("--encode", action="store_true", help="Obfuscate cards, dice and solution")
    gen.add_argument("--summary", action="store_true", help="Print text summaries instead of JSON")
    gen.add_argument("--output", type=str, help="Write JSON here instead of stdout")
    gen.set_defaults(func=cmd_generate)

    cnt = sub.add_parser("count", help="Count solutions of stored puzzles")
    cnt.add_argument("--input", type=str, required=True, help="Puzzle JSON file (plain or encoded)")
    cnt.add_argument("--id", type=int, help="Only this puzzle id")
    cnt.add_argument("--no-complement", action="store_true", help="Count without the complement die")
    cnt.add_argument("--output", type=str, help="Write JSON here instead of stdout")
    cnt.set_defaults(func=cmd_count)

    show = sub.add_parser("show", help="Print a text summary of stored puzzles")
    show.add_argument("--input", type=str, required=True, help="Puzzle JSON file (plain or encoded)")
    show.add_argument("--id", type=int, help="Only this puzzle id")
    show.add_argument("--hide-solution", action="store_true", help="Leave out the example solution")
    show.set_defaults(func=cmd_show)
    return parser


def main(argv: Optional[List[str]] = None):
    """Command-line interface for the puzzle tools."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    try:
        code = args.func(args)
    except (PuzzleError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
