"""Client side of the poker table protocol."""

from __future__ import annotations

import socket
import sys
import time
from typing import Callable

from holdem.cards import NOCARD, card_name
from holdem.logs import log_err, log_info
from holdem.protocol import (
    MAX_PLAYERS,
    SERVER_PACKET_SIZE,
    ClientPacket,
    ClientPacketType,
    EndPacket,
    InfoPacket,
    ProtocolError,
    ServerPacket,
    ServerPacketType,
)

SERVER_IP = "127.0.0.1"
BASE_PORT = 2201
CONNECT_DELAYS = (0.1, 0.2, 0.4, 0.8, 1.6, 3.2, 6.4)


class ClientError(RuntimeError):
    """Raised when talking to the server fails."""


def log_info_packet(info: InfoPacket | None) -> None:
    """Write the contents of an INFO packet to the log."""
    if info is None:
        return
    log_info(
        f"[INFO_PACKET] pot_size={info.pot_size}, player_turn={info.player_turn}, "
        f"dealer={info.dealer}, bet_size={info.bet_size}"
    )
    log_info(
        f"[INFO_PACKET] Your Cards: {card_name(info.player_cards[0])} "
        f"{card_name(info.player_cards[1])}"
    )
    for index, card in enumerate(info.community_cards):
        if card != NOCARD:
            log_info(f"[INFO_PACKET] Community Card {index}: {card_name(card)}")
    rows = zip(info.player_stacks, info.player_bets, info.player_status)
    for pid, (stack, bet, status) in enumerate(rows):
        log_info(f"[INFO_PACKET] Player {pid}: stack={stack}, bet={bet}, status={status}")


def log_end_packet(end: EndPacket | None) -> None:
    """Write the contents of an END packet to the log."""
    if end is None:
        return
    log_info(f"[END_PACKET] pot_size={end.pot_size}, winner={end.winner}, dealer={end.dealer}")
    for index, card in enumerate(end.community_cards):
        if card != NOCARD:
            log_info(f"[END_PACKET] Community Card {index}: {card_name(card)}")
    for pid, (stack, hand) in enumerate(zip(end.player_stacks, end.player_cards)):
        log_info(
            f"[END_PACKET] Player {pid} Final Stack={stack}, "
            f"Cards: {card_name(hand[0])} {card_name(hand[1])}"
        )


class PokerClient:
    """A connection to the table server as one seat."""

    def __init__(self, player_id: int) -> None:
        if not 0 <= player_id < MAX_PLAYERS:
            raise ValueError(f"player id out of range: {player_id}")
        self.player_id = player_id
        self.host = SERVER_IP
        self.port = BASE_PORT + player_id
        self.timeout: float | None = None
        self.connect_delays: tuple[float, ...] = CONNECT_DELAYS
        self.on_info: Callable[[InfoPacket], None] | None = None
        self.on_end: Callable[[EndPacket], None] | None = None
        self.on_halt: Callable[[], None] | None = None
        self.last_packet: ServerPacket | None = None
        self._halt_received = False
        self._sock: socket.socket | None = None

    def __enter__(self) -> PokerClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def _socket(self) -> socket.socket:
        if self._sock is None:
            raise ClientError("not connected to the server")
        return self._sock

    def connect(self) -> None:
        """Connect to the server, retrying with growing delays, and send JOIN."""
        for attempt, delay in enumerate(self.connect_delays):
            try:
                sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
                break
            except OSError:
                print(f"Failed to connect (Attempt #{attempt})", file=sys.stderr)
                time.sleep(delay)
        else:
            log_err("connect failed in connect_to_serv")
            raise ClientError(f"could not connect to {self.host}:{self.port}")

        self._sock = sock
        log_info(f"[Client] Successfully connected to server at {self.host}:{self.port}")
        log_info("[Client ~> Server] Sending packet: type=JOIN")
        try:
            sock.sendall(ClientPacket(ClientPacketType.JOIN).pack())
        except OSError as exc:
            log_err("send failed in join.")
            raise ClientError("sending JOIN failed") from exc

    def disconnect(self) -> bool:
        """Close the connection; return False if there was none."""
        if self._sock is None:
            return False
        self._sock.close()
        self._sock = None
        return True

    def _read_packet(self) -> ServerPacket:
        sock = self._socket()
        data = bytearray()
        try:
            while len(data) < SERVER_PACKET_SIZE:
                chunk = sock.recv(SERVER_PACKET_SIZE - len(data))
                if not chunk:
                    raise ClientError("server closed the connection")
                data += chunk
            return ServerPacket.unpack(bytes(data))
        except (OSError, ProtocolError) as exc:
            raise ClientError(str(exc)) from exc

    def send_packet(self, packet: ClientPacket) -> bool:
        """Send a packet; return whether the server acknowledged it.

        READY and LEAVE get no response and count as accepted once sent.
        """
        sock = self._socket()
        kind = packet.packet_type
        if kind is ClientPacketType.RAISE:
            log_info(f"[Client ~> Server] Sending packet: type={kind.name}, param[0]={packet.param}")
        else:
            log_info(f"[Client ~> Server] Sending packet: type={kind.name}")
        try:
            sock.sendall(packet.pack())
        except OSError as exc:
            log_err("send failed in send_packet")
            raise ClientError("send failed") from exc

        if kind in (ClientPacketType.READY, ClientPacketType.LEAVE):
            return True

        try:
            response = self._read_packet()
        except ClientError:
            log_err("recv failed after sending packet")
            raise
        log_info(f"[Server ~> Client] Received response packet: type={response.packet_type.name}")
        return response.packet_type is ServerPacketType.ACK

    def recv_packet(self) -> ServerPacket:
        """Wait for a packet from the server and pass it to the matching handler."""
        try:
            packet = self._read_packet()
        except ClientError:
            log_err("recv failed in recv_packet")
            raise
        self.last_packet = packet

        kind = packet.packet_type
        if kind is ServerPacketType.INFO:
            log_info_packet(packet.info)
            if self.on_info is not None:
                self.on_info(packet.info)
        elif kind is ServerPacketType.END:
            log_end_packet(packet.end)
            if self.on_end is not None:
                self.on_end(packet.end)
        elif kind is ServerPacketType.HALT:
            self._halt_received = True
            log_info("[Server ~> Client] Received HALT")
            if self.on_halt is not None:
                self.on_halt()
        else:
            log_info(f"[Server ~> Client] Received {kind.name}")
        return packet

    def ready(self) -> bool:
        """Tell the server this player is ready for the next hand."""
        return self.send_packet(ClientPacket(ClientPacketType.READY))

    def check(self) -> bool:
        """Check."""
        return self.send_packet(ClientPacket(ClientPacketType.CHECK))

    def bet_raise(self, amount: int) -> bool:
        """Raise by the given amount."""
        return self.send_packet(ClientPacket(ClientPacketType.RAISE, amount))

    def call(self) -> bool:
        """Call the current bet."""
        return self.send_packet(ClientPacket(ClientPacketType.CALL))

    def fold(self) -> bool:
        """Fold the hand."""
        return self.send_packet(ClientPacket(ClientPacketType.FOLD))

    def leave(self) -> bool:
        """Leave the table."""
        return self.send_packet(ClientPacket(ClientPacketType.LEAVE))

    def is_players_turn(self, player_id: int) -> bool:
        """Return whether the last INFO packet gives the turn to player_id."""
        last = self.last_packet
        if last is None or last.packet_type is not ServerPacketType.INFO:
            return False
        return last.info.player_turn == player_id

    def has_recv_halt(self) -> bool:
        """Return whether a HALT packet has arrived."""
        return self._halt_received