"""Texas hold'em game state, dealing and hand evaluation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from itertools import combinations, pairwise
from typing import Iterable, MutableSequence

from holdem.cards import DECK_SIZE, NOCARD, SUIT_BITS, rank_of, suit_of
from holdem.protocol import COMMUNITY_SIZE, HAND_SIZE, MAX_PLAYERS
from holdem.rng import CRandom

HAND_RANK_SHIFT = 20

HIGH_CARD = 1
ONE_PAIR = 2
TWO_PAIR = 3
THREE_OF_A_KIND = 4
STRAIGHT = 5
FLUSH = 6
FULL_HOUSE = 7
FOUR_OF_A_KIND = 8
STRAIGHT_FLUSH = 9

_WHEEL = [14, 5, 4, 3, 2]


class PlayerStatus(IntEnum):
    FOLDED = 0
    ACTIVE = 1
    ALLIN = 2
    LEFT = 3


class RoundStage(IntEnum):
    JOIN = 0
    INIT = 1
    PREFLOP = 2
    FLOP = 3
    TURN = 4
    RIVER = 5
    SHOWDOWN = 6


def new_deck() -> list[int]:
    """Return the 52 cards in ascending order."""
    return [(rank << SUIT_BITS) | suit for rank in range(13) for suit in range(4)]


def shuffle_deck(deck: MutableSequence[int], rng: CRandom) -> None:
    """Shuffle the deck in place, swapping each position with a random one."""
    for i in range(len(deck)):
        j = rng.rand() % DECK_SIZE
        deck[i], deck[j] = deck[j], deck[i]


def get_card_rank(card: int) -> int:
    """Return the poker rank of a card, 2 through 14."""
    return rank_of(card) + 2


def get_suit(card: int) -> int:
    """Return the suit of a card."""
    return suit_of(card)


def sort_cards(cards: Iterable[int]) -> list[int]:
    """Return the cards sorted by rank, highest first."""
    return sorted(cards, key=get_card_rank, reverse=True)


def set_card_tie(points: int, ranks: list[int]) -> int:
    """Add the five ranks as tiebreaker nibbles below the hand category."""
    for shift, rank in zip((16, 12, 8, 4, 0), ranks):
        points |= rank << shift
    return points


def _category(kind: int) -> int:
    return kind << HAND_RANK_SHIFT


def calculate_5card_value(hand: list[int]) -> int:
    """Score five cards sorted by descending rank; larger scores win."""
    ranks = [get_card_rank(c) for c in hand]
    suits = [get_suit(c) for c in hand]
    r0, r1, r2, r3, r4 = ranks
    flush = len(set(suits)) == 1
    straight = all(a == b + 1 for a, b in pairwise(ranks))
    wheel = ranks == _WHEEL

    if straight and flush:
        return _category(STRAIGHT_FLUSH) | r0 << 16
    if wheel and flush:
        return _category(STRAIGHT_FLUSH) | 5 << 16
    if r0 == r1 == r2 == r3:
        return _category(FOUR_OF_A_KIND) | r0 << 16
    if r1 == r2 == r3 == r4:
        return _category(FOUR_OF_A_KIND) | r1 << 16
    if r0 == r1 == r2 and r3 == r4:
        return _category(FULL_HOUSE) | r0 << 16 | r3 << 12
    if r0 == r1 and r2 == r3 == r4:
        return _category(FULL_HOUSE) | r2 << 16 | r0 << 12
    if flush:
        return set_card_tie(_category(FLUSH), ranks)
    if straight:
        return _category(STRAIGHT) | r0 << 16
    if wheel:
        return _category(STRAIGHT) | r1 << 16
    if r0 == r1 == r2:
        return _category(THREE_OF_A_KIND) | r0 << 16
    if r1 == r2 == r3:
        return _category(THREE_OF_A_KIND) | r1 << 16
    if r2 == r3 == r4:
        return _category(THREE_OF_A_KIND) | r2 << 16
    if r0 == r1 and r2 == r3:
        return _category(TWO_PAIR) | r0 << 16 | r2 << 12
    if r0 == r1 and r3 == r4:
        return _category(TWO_PAIR) | r0 << 16 | r3 << 12
    if r1 == r2 and r3 == r4:
        return _category(TWO_PAIR) | r1 << 16 | r3 << 12
    if r0 == r1:
        return _category(ONE_PAIR) | r0 << 16
    if r1 == r2:
        return _category(ONE_PAIR) | r1 << 16
    if r2 == r3:
        return _category(ONE_PAIR) | r2 << 16
    if r3 == r4:
        return _category(ONE_PAIR) | r3 << 16
    return set_card_tie(_category(HIGH_CARD), ranks)


@dataclass
class GameState:
    """Everything the server tracks about the table."""

    player_hands: list[list[int]] = field(
        default_factory=lambda: [[0] * HAND_SIZE for _ in range(MAX_PLAYERS)]
    )
    community_cards: list[int] = field(default_factory=lambda: [0] * COMMUNITY_SIZE)
    deck: list[int] = field(default_factory=new_deck)
    next_card: int = 0
    player_stacks: list[int] = field(default_factory=lambda: [0] * MAX_PLAYERS)
    current_bets: list[int] = field(default_factory=lambda: [0] * MAX_PLAYERS)
    highest_bet: int = 0
    player_status: list[PlayerStatus] = field(
        default_factory=lambda: [PlayerStatus.FOLDED] * MAX_PLAYERS
    )
    pot_size: int = 0
    current_player: int = 0
    dealer_player: int = 0
    round_stage: RoundStage = RoundStage.JOIN
    num_players: int = 0
    rng: CRandom = field(default_factory=CRandom)

    def _next_active(self, start: int) -> int:
        seat = start
        for _ in range(MAX_PLAYERS):
            seat = (seat + 1) % MAX_PLAYERS
            if self.player_status[seat] is PlayerStatus.ACTIVE:
                break
        return seat

    def _draw(self) -> int:
        if self.next_card >= DECK_SIZE:
            raise RuntimeError("out of deck cards")
        card = self.deck[self.next_card]
        self.next_card += 1
        return card

    def reset(self) -> None:
        """Shuffle and clear the table for a new hand."""
        shuffle_deck(self.deck, self.rng)
        self.player_hands = [[NOCARD] * HAND_SIZE for _ in range(MAX_PLAYERS)]
        self.community_cards = [NOCARD] * COMMUNITY_SIZE
        self.next_card = 0
        self.clear_bets()
        self.pot_size = 0
        self.round_stage = RoundStage.INIT
        self.current_player = self._next_active(self.dealer_player)

    def ready(self) -> int:
        """Drop broke players and return how many are ready.

        The dealer button moves on only when at least two players are ready.
        """
        for pid, stack in enumerate(self.player_stacks):
            if stack <= 0:
                self.player_status[pid] = PlayerStatus.LEFT
        self.num_players = sum(s is PlayerStatus.ACTIVE for s in self.player_status)
        if self.num_players >= 2:
            self.dealer_player = self._next_active(self.dealer_player)
        return self.num_players

    def deal(self) -> None:
        """Give two cards to every active player."""
        for pid, status in enumerate(self.player_status):
            if status is PlayerStatus.ACTIVE:
                self.player_hands[pid] = [self._draw(), self._draw()]

    def deal_community(self) -> None:
        """Deal the community cards belonging to the current stage."""
        slots = {
            RoundStage.FLOP: range(0, 3),
            RoundStage.TURN: range(3, 4),
            RoundStage.RIVER: range(4, 5),
        }.get(self.round_stage)
        if slots is None:
            return
        if self.next_card + len(slots) > DECK_SIZE:
            raise RuntimeError("out of deck cards")
        for slot in slots:
            self.community_cards[slot] = self._draw()

    def find_next_player(self, from_dealer: bool) -> None:
        """Move the turn to the next active player after the dealer or current player."""
        start = self.dealer_player if from_dealer else self.current_player
        self.current_player = self._next_active(start)

    def clear_bets(self) -> None:
        """Zero the bets of the betting round."""
        self.current_bets = [0] * MAX_PLAYERS
        self.highest_bet = 0

    def evaluate_hand(self, pid: int) -> int:
        """Return the best five-card score from a player's hand and the board."""
        cards = sort_cards([*self.player_hands[pid], *self.community_cards])
        return max(calculate_5card_value(list(combo)) for combo in combinations(cards, 5))

    def find_winner(self) -> int | None:
        """Return the first player holding the best hand, or None if nobody contends."""
        contenders = [
            pid
            for pid, status in enumerate(self.player_status)
            if status in (PlayerStatus.ACTIVE, PlayerStatus.ALLIN)
        ]
        if not contenders:
            return None
        return max(contenders, key=self.evaluate_hand)


def init_game_state(starting_stack: int, random_seed: int) -> GameState:
    """Create a fresh table with every stack set and the deck seeded."""
    return GameState(
        player_stacks=[starting_stack] * MAX_PLAYERS,
        rng=CRandom(random_seed),
    )