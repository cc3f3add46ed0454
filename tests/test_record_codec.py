from dataclasses import replace

import pytest

from SetPuzzle.type import Card, Die, DieFlag, Puzzle, RecordFormatError, Solution
from SetPuzzle.codec import decode_puzzle, decode_value, encode_puzzle, encode_value
from SetPuzzle.record import (
    card_from_json, die_from_json, die_from_value, die_to_json, parse_row,
    puzzle_from_record, puzzle_to_record,
)
from SetPuzzle.generator import generate_dice_from_solution
from SetPuzzle.Utils.card_encoder import card_to_code, code_to_card

from conftest import FIXTURE_CODES


@pytest.fixture
def puzzle(cards, row):
    dice = (
        Die.color("red", id="die-0"),
        Die.restriction("⊆", id="die-1"),
        Die.constant("U", id="die-2", flag=DieFlag.WILD),
        Die.color("blue", id="die-3"),
    )
    return Puzzle(
        cards=cards,
        dice=dice,
        goal=5,
        solution=Solution(row("red ⊆ U"), row("blue")),
        solution_count=1,
        shortest_solution=4,
        longest_solution=4,
        id=7,
    )


def test_parse_row_splits_fused_complements():
    assert [d.value for d in parse_row("red′ ∪ green")] == ["red", "′", "∪", "green"]
    assert [d.value for d in parse_row("U′′")] == ["U", "′", "′"]
    assert parse_row("") == ()
    assert parse_row(None) == ()


def test_die_from_value():
    assert die_from_value("∅") == Die.constant("∅")
    with pytest.raises(RecordFormatError):
        die_from_value("purple")


def test_die_json_flags():
    die = Die.operator("∩", flag=DieFlag.REQUIRED, id="die-4")
    obj = die_to_json(die)
    assert obj == {"type": "operator", "value": "∩", "id": "die-4", "isRequired": True}
    assert die_from_json(obj) == die
    with pytest.raises(RecordFormatError):
        die_from_json({"type": "color", "value": "red", "isWild": True, "isBonus": True})
    with pytest.raises(RecordFormatError):
        die_from_json({"type": "color", "value": "∪"})
    with pytest.raises(RecordFormatError):
        die_from_json({"value": "red"})


def test_cards_from_json():
    assert card_from_json(10) == Card.of("red", "green")
    assert card_from_json({"colors": ["gold"]}) == Card.of("gold")
    for bad in (16, -1, True, {"colors": ["pink"]}, "red"):
        with pytest.raises(RecordFormatError):
            card_from_json(bad)


def test_card_codes_round_trip():
    for code in range(16):
        assert card_to_code(code_to_card(code)) == code


def test_puzzle_record_round_trip(puzzle):
    record = puzzle_to_record(puzzle)
    assert record["solution"] == {"topRow": "red ⊆ U", "bottomRow": "blue", "hasRestriction": True}
    assert record["dice"][2]["isWild"] is True
    assert puzzle_from_record(record) == puzzle


def test_compact_cards(puzzle):
    record = puzzle_to_record(puzzle, compact_cards=True)
    assert record["cards"] == FIXTURE_CODES
    assert puzzle_from_record(record).cards == puzzle.cards


def test_record_errors(puzzle):
    record = puzzle_to_record(puzzle)
    with pytest.raises(RecordFormatError):
        puzzle_from_record(encode_puzzle(record))
    with pytest.raises(RecordFormatError):
        puzzle_from_record({k: v for k, v in record.items() if k != "goal"})
    with pytest.raises(RecordFormatError):
        puzzle_from_record({**record, "goal": "5"})
    with pytest.raises(RecordFormatError):
        puzzle_from_record({**record, "solution": {"topRow": None}})
    with pytest.raises(RecordFormatError):
        puzzle_from_record({**record, "cards": record["cards"][:7]})


def test_encode_known_value():
    # "[]" XOR 0x21, 0x32 -> "zo"
    assert encode_value([]) == "em8="
    assert decode_value("em8=") == []


def test_codec_round_trip(puzzle):
    record = puzzle_to_record(puzzle)
    encoded = encode_puzzle(record)
    assert all(isinstance(encoded[f], str) for f in ("cards", "dice", "solution"))
    assert encoded["goal"] == record["goal"]
    assert encoded["id"] == record["id"]
    assert encoded["solutionCount"] == 1
    assert decode_puzzle(encoded) == record
    assert record["cards"][0] == {"colors": ["blue", "gold"]}


def test_decode_leaves_plain_fields_alone(puzzle):
    record = puzzle_to_record(puzzle)
    assert decode_puzzle(record) == record


def test_decode_garbage():
    with pytest.raises(RecordFormatError):
        decode_value("!!not base64!!")
    with pytest.raises(RecordFormatError):
        decode_value("é")
    with pytest.raises(RecordFormatError):
        decode_puzzle({"cards": encode_value([])[:-2] + "zz"})


def test_die_equality_includes_flag_and_id():
    assert Die.color("red") == Die.color("red")
    assert Die.color("red", id="die-0") != Die.color("red")
    assert Die.color("red", flag=DieFlag.BONUS) != Die.color("red")


def test_generated_puzzle_round_trip(cards):
    dice = generate_dice_from_solution(Solution((), parse_row("red ∪ blue′")))
    dice = dice[:2] + (replace(dice[2], flag=DieFlag.REQUIRED),) + dice[3:]
    puzzle = Puzzle(cards=cards, dice=dice, goal=4, solution=Solution((), dice), id=3)
    loaded = puzzle_from_record(puzzle_to_record(puzzle))
    assert loaded.dice == puzzle.dice
    assert loaded.solution.canonical == puzzle.solution.canonical
    assert loaded.solution.set_name_dice == parse_row("red ∪ blue ′")
