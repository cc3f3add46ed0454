import pytest

from SetPuzzle.type import Die, DieFlag, Puzzle, Solution
from SetPuzzle.Utils.render_board import render_batch, render_summary, summary_context


@pytest.fixture
def puzzle(cards, row):
    return Puzzle(
        cards=cards,
        dice=(Die.color("red"), Die.restriction("⊆"), Die.constant("U", flag=DieFlag.BONUS), Die.color("blue")),
        goal=5,
        solution=Solution(row("red ⊆ U"), row("blue")),
        solution_count=1,
        shortest_solution=4,
        longest_solution=4,
        template="3+1",
        id=2,
    )


def test_context_marks_matched_cards(puzzle):
    ctx = summary_context(puzzle)
    assert [c["matched"] for c in ctx["cards"]] == [True, True, False, False, True, True, True, False]
    assert ctx["cards"][2]["colors"] == ["red", "green", "gold"]
    assert ctx["difficulty"] == "beginner"
    assert ctx["score"] == (5 + 20 + 15 + 5) * 4


def test_render_summary(puzzle):
    text = render_summary(puzzle)
    assert "Puzzle #2 (3+1)" in text
    assert "Goal: 5 cards" in text
    assert "Solutions: 1" in text
    assert "Cube range: 4 - 4 cubes" in text
    assert "red, green, gold" in text
    assert "U  [bonus]" in text
    assert "Top row:    red ⊆ U" in text
    assert "Bottom row: blue" in text


def test_render_hides_solution(puzzle):
    text = render_summary(puzzle, show_solution=False)
    assert "Bottom row" not in text
    assert "*" not in text


def test_render_batch(puzzle):
    text = render_batch([puzzle, puzzle])
    assert text.count("Goal: 5 cards") == 2
