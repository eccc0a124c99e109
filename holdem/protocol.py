"""Wire format of the packets exchanged between poker clients and the server."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from itertools import islice
from typing import Iterable, Iterator

from holdem.cards import NOCARD

MAX_PLAYERS = 6
MAX_CLIENT_PACKET_PARAMS = 1
HAND_SIZE = 2
COMMUNITY_SIZE = 5


class ProtocolError(ValueError):
    """Raised when a packet cannot be encoded or decoded."""


class ClientPacketType(IntEnum):
    JOIN = 0
    LEAVE = 1
    READY = 2
    RAISE = 3
    CALL = 4
    CHECK = 5
    FOLD = 6


class ServerPacketType(IntEnum):
    ACK = 0
    NACK = 1
    INFO = 2
    END = 3
    HALT = 4


_CLIENT_STRUCT = struct.Struct("<ii")
_TYPE_STRUCT = struct.Struct("<i")
_INFO_INTS = HAND_SIZE + COMMUNITY_SIZE + MAX_PLAYERS + 4 + MAX_PLAYERS + MAX_PLAYERS
_END_INTS = MAX_PLAYERS * HAND_SIZE + COMMUNITY_SIZE + MAX_PLAYERS + 3 + MAX_PLAYERS
_INFO_STRUCT = struct.Struct(f"<{_INFO_INTS}i")
_END_STRUCT = struct.Struct(f"<{_END_INTS}i")
_UNION_SIZE = max(_INFO_STRUCT.size, _END_STRUCT.size)

CLIENT_PACKET_SIZE = _CLIENT_STRUCT.size
SERVER_PACKET_SIZE = _TYPE_STRUCT.size + _UNION_SIZE


def _fixed(values: Iterable[int], length: int, what: str) -> list[int]:
    items = [int(v) for v in values]
    if len(items) != length:
        raise ProtocolError(f"{what} needs {length} entries, got {len(items)}")
    return items


def _take(it: Iterator[int], count: int) -> list[int]:
    return list(islice(it, count))


@dataclass
class ClientPacket:
    """A request from a client; param carries the raise amount."""

    packet_type: ClientPacketType
    param: int = 0

    def pack(self) -> bytes:
        try:
            return _CLIENT_STRUCT.pack(int(self.packet_type), int(self.param))
        except struct.error as exc:
            raise ProtocolError(str(exc)) from exc

    @classmethod
    def unpack(cls, data: bytes) -> ClientPacket:
        if len(data) != CLIENT_PACKET_SIZE:
            raise ProtocolError(f"client packet must be {CLIENT_PACKET_SIZE} bytes, got {len(data)}")
        raw_type, param = _CLIENT_STRUCT.unpack(data)
        try:
            packet_type = ClientPacketType(raw_type)
        except ValueError as exc:
            raise ProtocolError(f"unknown client packet type {raw_type}") from exc
        return cls(packet_type, param)


@dataclass
class InfoPacket:
    """Game state sent to a player during a hand."""

    player_cards: list[int] = field(default_factory=lambda: [NOCARD] * HAND_SIZE)
    community_cards: list[int] = field(default_factory=lambda: [NOCARD] * COMMUNITY_SIZE)
    player_stacks: list[int] = field(default_factory=lambda: [0] * MAX_PLAYERS)
    pot_size: int = 0
    dealer: int = 0
    player_turn: int = 0
    bet_size: int = 0
    player_bets: list[int] = field(default_factory=lambda: [0] * MAX_PLAYERS)
    player_status: list[int] = field(default_factory=lambda: [0] * MAX_PLAYERS)

    def _to_ints(self) -> list[int]:
        return [
            *_fixed(self.player_cards, HAND_SIZE, "player_cards"),
            *_fixed(self.community_cards, COMMUNITY_SIZE, "community_cards"),
            *_fixed(self.player_stacks, MAX_PLAYERS, "player_stacks"),
            int(self.pot_size),
            int(self.dealer),
            int(self.player_turn),
            int(self.bet_size),
            *_fixed(self.player_bets, MAX_PLAYERS, "player_bets"),
            *_fixed(self.player_status, MAX_PLAYERS, "player_status"),
        ]

    @classmethod
    def _from_ints(cls, values: Iterable[int]) -> InfoPacket:
        it = iter(values)
        return cls(
            player_cards=_take(it, HAND_SIZE),
            community_cards=_take(it, COMMUNITY_SIZE),
            player_stacks=_take(it, MAX_PLAYERS),
            pot_size=next(it),
            dealer=next(it),
            player_turn=next(it),
            bet_size=next(it),
            player_bets=_take(it, MAX_PLAYERS),
            player_status=_take(it, MAX_PLAYERS),
        )


@dataclass
class EndPacket:
    """Result of a finished hand, sent to every seated player."""

    player_cards: list[list[int]] = field(
        default_factory=lambda: [[NOCARD] * HAND_SIZE for _ in range(MAX_PLAYERS)]
    )
    community_cards: list[int] = field(default_factory=lambda: [NOCARD] * COMMUNITY_SIZE)
    player_stacks: list[int] = field(default_factory=lambda: [0] * MAX_PLAYERS)
    pot_size: int = 0
    dealer: int = 0
    winner: int = 0
    player_status: list[int] = field(default_factory=lambda: [0] * MAX_PLAYERS)

    def _to_ints(self) -> list[int]:
        hands = list(self.player_cards)
        if len(hands) != MAX_PLAYERS:
            raise ProtocolError(f"player_cards needs {MAX_PLAYERS} hands, got {len(hands)}")
        cards = [c for hand in hands for c in _fixed(hand, HAND_SIZE, "hand")]
        return [
            *cards,
            *_fixed(self.community_cards, COMMUNITY_SIZE, "community_cards"),
            *_fixed(self.player_stacks, MAX_PLAYERS, "player_stacks"),
            int(self.pot_size),
            int(self.dealer),
            int(self.winner),
            *_fixed(self.player_status, MAX_PLAYERS, "player_status"),
        ]

    @classmethod
    def _from_ints(cls, values: Iterable[int]) -> EndPacket:
        it = iter(values)
        return cls(
            player_cards=[_take(it, HAND_SIZE) for _ in range(MAX_PLAYERS)],
            community_cards=_take(it, COMMUNITY_SIZE),
            player_stacks=_take(it, MAX_PLAYERS),
            pot_size=next(it),
            dealer=next(it),
            winner=next(it),
            player_status=_take(it, MAX_PLAYERS),
        )


@dataclass
class ServerPacket:
    """A message from the server; INFO carries info, END carries end."""

    packet_type: ServerPacketType
    info: InfoPacket | None = None
    end: EndPacket | None = None

    def __post_init__(self) -> None:
        try:
            self.packet_type = ServerPacketType(self.packet_type)
        except ValueError as exc:
            raise ProtocolError(f"unknown server packet type {self.packet_type}") from exc
        if self.packet_type is ServerPacketType.INFO and self.info is None:
            raise ProtocolError("INFO packet requires info")
        if self.packet_type is ServerPacketType.END and self.end is None:
            raise ProtocolError("END packet requires end")

    def pack(self) -> bytes:
        try:
            if self.packet_type is ServerPacketType.INFO:
                payload = _INFO_STRUCT.pack(*self.info._to_ints())
            elif self.packet_type is ServerPacketType.END:
                payload = _END_STRUCT.pack(*self.end._to_ints())
            else:
                payload = b""
        except struct.error as exc:
            raise ProtocolError(str(exc)) from exc
        return _TYPE_STRUCT.pack(int(self.packet_type)) + payload.ljust(_UNION_SIZE, b"\0")

    @classmethod
    def unpack(cls, data: bytes) -> ServerPacket:
        if len(data) != SERVER_PACKET_SIZE:
            raise ProtocolError(f"server packet must be {SERVER_PACKET_SIZE} bytes, got {len(data)}")
        (raw_type,) = _TYPE_STRUCT.unpack_from(data)
        try:
            packet_type = ServerPacketType(raw_type)
        except ValueError as exc:
            raise ProtocolError(f"unknown server packet type {raw_type}") from exc
        offset = _TYPE_STRUCT.size
        if packet_type is ServerPacketType.INFO:
            return cls(packet_type, info=InfoPacket._from_ints(_INFO_STRUCT.unpack_from(data, offset)))
        if packet_type is ServerPacketType.END:
            return cls(packet_type, end=EndPacket._from_ints(_END_STRUCT.unpack_from(data, offset)))
        return cls(packet_type)