"""Server-side handling of client requests and building of outgoing packets."""

from __future__ import annotations

from typing import Callable

from holdem.game import GameState, PlayerStatus, RoundStage
from holdem.protocol import (
    ClientPacket,
    ClientPacketType,
    EndPacket,
    InfoPacket,
    ServerPacket,
    ServerPacketType,
)

_BETTING_STAGES = frozenset(
    {RoundStage.PREFLOP, RoundStage.FLOP, RoundStage.TURN, RoundStage.RIVER}
)


def status_code(status: PlayerStatus) -> int:
    """Return the wire status of a player: 1 in hand, 0 folded, 2 left."""
    if status in (PlayerStatus.ACTIVE, PlayerStatus.ALLIN):
        return 1
    if status == PlayerStatus.FOLDED:
        return 0
    return 2


def _can_act(game: GameState, pid: int) -> bool:
    return game.current_player == pid and game.round_stage in _BETTING_STAGES


def _ready(game: GameState, pid: int, packet: ClientPacket) -> bool:
    if game.round_stage != RoundStage.INIT:
        return False
    if game.player_stacks[pid] <= 0:
        game.player_status[pid] = PlayerStatus.LEFT
        return False
    game.player_status[pid] = PlayerStatus.ACTIVE
    return True


def _leave(game: GameState, pid: int, packet: ClientPacket) -> bool:
    if game.round_stage != RoundStage.INIT:
        return False
    game.player_status[pid] = PlayerStatus.LEFT
    return True


def _raise(game: GameState, pid: int, packet: ClientPacket) -> bool:
    amount = packet.param
    if not (_can_act(game, pid) and amount > 0):
        return False
    new_total = game.current_bets[pid] + amount
    if new_total <= game.highest_bet or amount > game.player_stacks[pid]:
        return False
    game.current_bets[pid] = new_total
    game.player_stacks[pid] -= amount
    game.pot_size += amount
    game.highest_bet = new_total
    return True


def _call(game: GameState, pid: int, packet: ClientPacket) -> bool:
    if not (_can_act(game, pid) and game.highest_bet > 0):
        return False
    amount = game.highest_bet - game.current_bets[pid]
    if amount > game.player_stacks[pid] or amount <= 0:
        return False
    if amount == game.player_stacks[pid]:
        game.player_status[pid] = PlayerStatus.ALLIN
    game.current_bets[pid] += amount
    game.player_stacks[pid] -= amount
    game.pot_size += amount
    return True


def _check(game: GameState, pid: int, packet: ClientPacket) -> bool:
    return _can_act(game, pid) and game.highest_bet == 0


def _fold(game: GameState, pid: int, packet: ClientPacket) -> bool:
    if not _can_act(game, pid):
        return False
    game.player_status[pid] = PlayerStatus.FOLDED
    return True


_HANDLERS: dict[ClientPacketType, Callable[[GameState, int, ClientPacket], bool]] = {
    ClientPacketType.READY: _ready,
    ClientPacketType.LEAVE: _leave,
    ClientPacketType.RAISE: _raise,
    ClientPacketType.CALL: _call,
    ClientPacketType.CHECK: _check,
    ClientPacketType.FOLD: _fold,
}


def handle_client_action(game: GameState, pid: int, packet: ClientPacket) -> ServerPacketType:
    """Apply a client's request to the game and return ACK or NACK."""
    kind = packet.packet_type
    if (
        game.player_status[pid] == PlayerStatus.FOLDED
        and game.round_stage != RoundStage.INIT
        and kind not in (ClientPacketType.READY, ClientPacketType.LEAVE)
    ):
        return ServerPacketType.NACK
    handler = _HANDLERS.get(kind)
    if handler is not None and handler(game, pid, packet):
        return ServerPacketType.ACK
    return ServerPacketType.NACK


def build_info_packet(game: GameState, pid: int) -> ServerPacket:
    """Build the INFO packet describing the table as seen by player pid."""
    info = InfoPacket(
        player_cards=list(game.player_hands[pid]),
        community_cards=list(game.community_cards),
        player_stacks=list(game.player_stacks),
        pot_size=game.pot_size,
        dealer=game.dealer_player,
        player_turn=game.current_player,
        bet_size=game.highest_bet,
        player_bets=list(game.current_bets),
        player_status=[status_code(s) for s in game.player_status],
    )
    return ServerPacket(ServerPacketType.INFO, info=info)


def build_end_packet(game: GameState, winner: int) -> ServerPacket:
    """Build the END packet announcing the result of a hand."""
    end = EndPacket(
        player_cards=[list(hand) for hand in game.player_hands],
        community_cards=list(game.community_cards),
        player_stacks=list(game.player_stacks),
        pot_size=game.pot_size,
        dealer=game.dealer_player,
        winner=winner,
        player_status=[status_code(s) for s in game.player_status],
    )
    return ServerPacket(ServerPacketType.END, end=end)