"""Screen geometry, panel artwork, buttons and bet-prompt parsing for the terminal client."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, NamedTuple

from holdem.protocol import MAX_PLAYERS

PLAYER_PANEL_WIDTH = 23
PLAYER_PANEL_HEIGHT = 5
PLAYER_PANEL = (
    "╔──────────╦──────────╗",
    "│          │          │",
    "╚─────┬────┼────┬─────╝",
    "      │    │    │      ",
    "      └────┴────┘      ",
)

POT_PANEL_WIDTH = 19
POT_PANEL_HEIGHT = 5
POT_PANEL = (
    "╔─────╦───────────╗",
    "│ Pot │           │",
    "╠─────╬───────────╣",
    "│ Bet │           │",
    "╚─────╩───────────╝",
)

COMMUNITY_PANEL_WIDTH = 26
COMMUNITY_PANEL_HEIGHT = 3
COMMUNITY_PANEL = (
    "┌────┬────┬────┬────┬────┐",
    "│    │    │    │    │    │",
    "└────┴────┴────┴────┴────┘",
)

BET_PROMPT_PANEL_WIDTH = 26
BET_PROMPT_PANEL_HEIGHT = 4
BET_PROMPT_PANEL = (
    "┌────────────────────────┐",
    "│ Enter bet amount:      │",
    "│                        │",
    "└────────────────────────┘",
)

POKER_BUTTONS = 3
POKER_BUTTON_WIDTHS = (8, 9, 8)
MAX_BET_INPUT = 22

_PLAYER_PANEL_ROWS = (MAX_PLAYERS + 1) // 2
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class Coordinate:
    """A screen position, column x and row y."""

    x: int
    y: int


def player_panel_anchors(max_x: int, max_y: int) -> list[Coordinate]:
    """Top-left corners of the player panels: even seats left, odd seats right."""
    anchors: list[Coordinate] = []
    y = 1
    for seat in range(MAX_PLAYERS):
        if seat % 2:
            anchors.append(Coordinate(max_x - 2 - PLAYER_PANEL_WIDTH, y))
            y += PLAYER_PANEL_HEIGHT + 1
        else:
            anchors.append(Coordinate(2, y))
    return anchors


def pot_panel_anchor(max_x: int) -> Coordinate:
    """Top-left corner of the pot panel, centred on the top row."""
    return Coordinate(max_x // 2 - POT_PANEL_WIDTH // 2, 1)


def community_anchor(max_x: int) -> Coordinate:
    """Top-left corner of the community cards, centred among the player panels."""
    lines = PLAYER_PANEL_HEIGHT * _PLAYER_PANEL_ROWS + _PLAYER_PANEL_ROWS - 1
    return Coordinate(max_x // 2 - COMMUNITY_PANEL_WIDTH // 2, 1 + lines // 2)


def bet_prompt_anchor(max_x: int) -> Coordinate:
    """Top-left corner of the bet prompt."""
    lines = BET_PROMPT_PANEL_HEIGHT * _PLAYER_PANEL_ROWS + _PLAYER_PANEL_ROWS - 1
    return Coordinate(max_x // 2 - BET_PROMPT_PANEL_WIDTH // 2, 1 + lines // 2)


def button_anchors(max_x: int) -> list[Coordinate]:
    """Top-left corners of the three action buttons below the player panels."""
    y = 1 + PLAYER_PANEL_HEIGHT * _PLAYER_PANEL_ROWS + _PLAYER_PANEL_ROWS - 1
    mid_x = max_x // 2
    box_width = POKER_BUTTON_WIDTHS[0] + 2
    half = box_width // 2
    return [
        Coordinate(mid_x - half - 1 - box_width - 2, y),
        Coordinate(mid_x - half, y),
        Coordinate(mid_x + half + 4, y),
    ]


def format_money(amount: int, width: int = 9) -> str:
    """Render an amount as '$N', cut to at most width characters."""
    if width < 1:
        raise ValueError(f"width must be positive, got {width}")
    return f"${amount}"[:width]


class BetAction(Enum):
    FOLD = "fold"
    CHECK = "check"
    CALL = "call"
    RAISE = "raise"


class BetInput(NamedTuple):
    action: BetAction
    amount: int = 0


def _atoi(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def parse_bet_input(text: str, check_enabled: bool) -> BetInput | None:
    """Interpret what was typed at the bet prompt; None if it is not a valid move.

    'check' is accepted only when nothing has been bet, 'call' only when
    something has; a positive number is a raise.
    """
    typed = text[:MAX_BET_INPUT].lower()
    if typed == "fold":
        return BetInput(BetAction.FOLD)
    if check_enabled and typed == "check":
        return BetInput(BetAction.CHECK)
    if not check_enabled and typed == "call":
        return BetInput(BetAction.CALL)
    amount = _atoi(typed)
    if amount > 0:
        return BetInput(BetAction.RAISE, amount)
    return None


ButtonCallback = Callable[["Button"], None]


@dataclass(eq=False)
class Button:
    """A clickable boxed area that tracks mouse hover."""

    top_left: Coordinate
    width: int
    height: int
    bottom_right: Coordinate = field(init=False)
    active: bool = field(default=False, init=False)
    hover: bool = field(default=False, init=False)
    on_hover: ButtonCallback | None = field(default=None, init=False)
    on_unhover: ButtonCallback | None = field(default=None, init=False)
    on_click: ButtonCallback | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.bottom_right = Coordinate(
            self.top_left.x + self.width + 2, self.top_left.y + self.height + 2
        )

    @property
    def panel_size(self) -> tuple[int, int]:
        """Rows and columns of the boxed panel, border included."""
        return self.height + 2, self.width + 2

    def contains(self, x: int, y: int) -> bool:
        """Return whether the point lies within the button's bounds, edges included."""
        return (
            self.top_left.x <= x <= self.bottom_right.x
            and self.top_left.y <= y <= self.bottom_right.y
        )

    def process_event(self, x: int, y: int, clicked: bool) -> None:
        """React to a mouse event at (x, y); inactive buttons ignore everything."""
        if not self.active:
            return
        inside = self.contains(x, y)
        if self.on_click is not None and clicked and inside:
            self.on_click(self)
        elif not self.hover and inside:
            self.hover = True
            if self.on_hover is not None:
                self.on_hover(self)
        elif self.hover and not inside:
            self.hover = False
            if self.on_unhover is not None:
                self.on_unhover(self)