"""Bitwise card codes (0-15) used by stored scenarios.

Bit 3 (8) = red, bit 2 (4) = blue, bit 1 (2) = green, bit 0 (1) = gold.
Example: 10 = 0b1010 = red + green.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Tuple

try:
    from ..type import Card, Color, InvalidCardError
except ImportError:  # direct execution fallback
    from type import Card, Color, InvalidCardError

COLOR_BITS: Dict[Color, int] = {
    Color.RED: 8,
    Color.BLUE: 4,
    Color.GREEN: 2,
    Color.GOLD: 1,
}
CARD_CODE_COUNT = 16


def code_to_card(code: int) -> Card:
    """Decode a 4-bit card code into a Card."""
    if not isinstance(code, int) or not 0 <= code < CARD_CODE_COUNT:
        raise InvalidCardError(f"Card code must be an int in 0..{CARD_CODE_COUNT - 1}, got {code!r}")
    return Card(frozenset(c for c, bit in COLOR_BITS.items() if code & bit))


def card_to_code(card: Card) -> int:
    code = 0
    for color in card.colors:
        code |= COLOR_BITS[color]
    return code


def cards_from_codes(codes: Iterable[int]) -> Tuple[Card, ...]:
    return tuple(code_to_card(c) for c in codes)


def all_cards() -> List[Card]:
    """All 16 color combinations, ordered by code."""
    return [code_to_card(code) for code in range(CARD_CODE_COUNT)]
