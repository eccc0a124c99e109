"""Card encoding: the rank lives in the upper bits, the suit in the lowest two."""

from __future__ import annotations

from enum import IntEnum

SUIT_BITS = 2
SUIT_MASK = (1 << SUIT_BITS) - 1
NOCARD = -1
DECK_SIZE = 52

_RANK_CHARS = "23456789TJQKA"
_SUIT_CHARS = "dchs"
_FANCY_SUITS = "♦♣♥♠"


class Suit(IntEnum):
    """Card suits, in increasing order of precedence."""

    DIAMOND = 0
    CLUB = 1
    HEART = 2
    SPADE = 3


class Rank(IntEnum):
    """Card ranks, already shifted past the suit bits."""

    TWO = 0 << SUIT_BITS
    THREE = 1 << SUIT_BITS
    FOUR = 2 << SUIT_BITS
    FIVE = 3 << SUIT_BITS
    SIX = 4 << SUIT_BITS
    SEVEN = 5 << SUIT_BITS
    EIGHT = 6 << SUIT_BITS
    NINE = 7 << SUIT_BITS
    TEN = 8 << SUIT_BITS
    JACK = 9 << SUIT_BITS
    QUEEN = 10 << SUIT_BITS
    KING = 11 << SUIT_BITS
    ACE = 12 << SUIT_BITS


def make_card(rank: int, suit: int) -> int:
    """Combine a rank and a suit into a card id."""
    return int(Rank(rank)) | int(Suit(suit))


def rank_of(card: int) -> int:
    """Return the rank index of a card (0 for two, 12 for ace)."""
    return card >> SUIT_BITS


def suit_of(card: int) -> int:
    """Return the suit of a card."""
    return card & SUIT_MASK


def _check_card(card: int) -> None:
    if not 0 <= card < DECK_SIZE:
        raise ValueError(f"invalid card id: {card}")


def card_id(text: str) -> int:
    """Parse a two-character card such as 'Ad' into its card id."""
    if len(text) != 2:
        raise ValueError(f"invalid card: {text!r}")
    rank = _RANK_CHARS.find(text[0])
    suit = _SUIT_CHARS.find(text[1])
    if rank < 0 or suit < 0:
        raise ValueError(f"invalid card: {text!r}")
    return (rank << SUIT_BITS) | suit


def card_name(card: int) -> str:
    """Return the printable name of a card, or an empty string for NOCARD."""
    if card == NOCARD:
        return ""
    _check_card(card)
    return _RANK_CHARS[rank_of(card)] + _SUIT_CHARS[suit_of(card)]


def fancy_card_name(card: int) -> str:
    """Return the name of a card with a unicode suit symbol."""
    if card == NOCARD:
        return ""
    _check_card(card)
    return _RANK_CHARS[rank_of(card)] + _FANCY_SUITS[suit_of(card)]