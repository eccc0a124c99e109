"""The poker table server: accepts six seats and runs hands until the table empties."""

from __future__ import annotations

import re
import socket
import sys
from typing import Protocol, Sequence

from holdem.actions import build_end_packet, build_info_packet, handle_client_action
from holdem.game import GameState, PlayerStatus, RoundStage, init_game_state
from holdem.protocol import (
    CLIENT_PACKET_SIZE,
    MAX_PLAYERS,
    ClientPacket,
    ClientPacketType,
    ProtocolError,
    ServerPacket,
    ServerPacketType,
)

BASE_PORT = 2201
NUM_PORTS = MAX_PLAYERS
STARTING_STACK = 100


class Connection(Protocol):
    def recv(self, size: int) -> bytes: ...

    def sendall(self, data: bytes) -> None: ...

    def close(self) -> None: ...


def _say(message: str) -> None:
    print(message, flush=True)


def open_listeners(base_port: int = BASE_PORT) -> list[socket.socket]:
    """Listen on one port per seat, starting at base_port."""
    listeners: list[socket.socket] = []
    try:
        for offset in range(NUM_PORTS):
            port = base_port + offset
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            listeners.append(sock)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("", port))
            sock.listen(0)
            _say(f"[Server] Running on port {port}")
    except OSError:
        for sock in listeners:
            sock.close()
        raise
    return listeners


def accept_players(listeners: Sequence[socket.socket]) -> list[socket.socket]:
    """Accept one connection on each listener, in seat order."""
    connections = []
    for listener in listeners:
        conn, _ = listener.accept()
        _say(f"[Server] accept() successful at port {listener.getsockname()[1]}")
        connections.append(conn)
    return connections


class PokerServer:
    """Runs hands over one connection per seat."""

    def __init__(self, game: GameState, connections: Sequence[Connection]) -> None:
        if len(connections) != MAX_PLAYERS:
            raise ValueError(f"need {MAX_PLAYERS} connections, got {len(connections)}")
        self.game = game
        self.connections = list(connections)

    def __enter__(self) -> PokerServer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _read(self, pid: int) -> ClientPacket | None:
        conn = self.connections[pid]
        data = bytearray()
        while len(data) < CLIENT_PACKET_SIZE:
            chunk = conn.recv(CLIENT_PACKET_SIZE - len(data))
            if not chunk:
                raise ConnectionError(f"player {pid} disconnected")
            data += chunk
        try:
            return ClientPacket.unpack(bytes(data))
        except ProtocolError:
            return None

    def _send(self, pid: int, packet: ServerPacket) -> None:
        try:
            self.connections[pid].sendall(packet.pack())
        except OSError:
            pass

    def _seated(self) -> list[int]:
        return [
            pid for pid, status in enumerate(self.game.player_status)
            if status is not PlayerStatus.LEFT
        ]

    def broadcast_info(self) -> None:
        """Send every seated player their view of the table."""
        for pid in self._seated():
            self._send(pid, build_info_packet(self.game, pid))

    def broadcast_end(self, winner: int) -> None:
        """Send every seated player the result of the hand."""
        packet = build_end_packet(self.game, winner)
        for pid in self._seated():
            self._send(pid, packet)

    def do_betting(self) -> bool:
        """Run one betting round; return True if all but one player folded."""
        game = self.game
        active = sum(s is PlayerStatus.ACTIVE for s in game.player_status)
        target = active
        remaining = active
        turn = 0
        while turn < target:
            pid = game.current_player
            packet = self._read(pid)
            if packet is None:
                response = ServerPacketType.NACK
                kind = None
            else:
                response = handle_client_action(game, pid, packet)
                kind = packet.packet_type
            self._send(pid, ServerPacket(response))

            if kind is ClientPacketType.FOLD:
                active -= 1
                remaining -= 1
                if active < 2:
                    return True

            if response is ServerPacketType.ACK:
                if kind is ClientPacketType.RAISE:
                    turn = 0
                    target = remaining
                last = turn + 1 == target
                game.find_next_player(from_dealer=last)
                if not last:
                    self.broadcast_info()
                turn += 1
        return False

    def read_joins(self) -> None:
        """Read the JOIN packet each seat sends on connecting."""
        self.game.round_stage = RoundStage.JOIN
        for pid in range(MAX_PLAYERS):
            packet = self._read(pid)
            if packet is not None and packet.packet_type is ClientPacketType.JOIN:
                _say(f"[Server] Player {pid} sent JOIN packet successfully.")

    def _collect_ready(self) -> None:
        game = self.game
        for pid in range(MAX_PLAYERS):
            if game.player_status[pid] is PlayerStatus.LEFT:
                continue
            packet = self._read(pid)
            if packet is None:
                continue
            if packet.packet_type is ClientPacketType.READY:
                _say(f"[Server] Player {pid} sent READY packet successfully.")
                if handle_client_action(game, pid, packet) is ServerPacketType.NACK:
                    _say(f"[Server] Player {pid} has no stack left, logging them out.")
                    self.connections[pid].close()
            elif packet.packet_type is ClientPacketType.LEAVE:
                _say(f"[Server] Player {pid} sent LEAVE packet successfully.")
                handle_client_action(game, pid, packet)
                self.connections[pid].close()

    def _play_hand(self) -> None:
        game = self.game
        game.reset()
        _say("[Server] ENTERING PREFLOP STAGE")
        game.round_stage = RoundStage.PREFLOP
        game.deal()
        self.broadcast_info()
        is_end = self.do_betting()
        game.clear_bets()

        for stage in (RoundStage.FLOP, RoundStage.TURN, RoundStage.RIVER):
            if is_end:
                break
            _say(f"[Server] ENTERING {stage.name} STAGE")
            game.round_stage = stage
            game.deal_community()
            self.broadcast_info()
            is_end = self.do_betting()
            if stage is not RoundStage.RIVER:
                game.clear_bets()

        if not is_end:
            _say("[Server] ENTERING SHOWDOWN STAGE")
            game.round_stage = RoundStage.SHOWDOWN

        _say("[Server] ENTERING END STAGE")
        if is_end:
            for pid, status in enumerate(game.player_status):
                if status not in (PlayerStatus.FOLDED, PlayerStatus.LEFT):
                    game.player_stacks[pid] += game.pot_size
                    self.broadcast_end(pid)
        else:
            winner = game.find_winner()
            if winner is None:
                self.broadcast_end(-1)
            else:
                game.player_stacks[winner] += game.pot_size
                self.broadcast_end(winner)

    def play(self) -> None:
        """Run hands until fewer than two players are ready."""
        game = self.game
        game.dealer_player = -1
        while True:
            game.round_stage = RoundStage.INIT
            self._collect_ready()
            ready = game.ready()
            if ready == 1:
                halt = ServerPacket(ServerPacketType.HALT)
                for pid in self._seated():
                    self._send(pid, halt)
                return
            if ready == 0:
                return
            self._play_hand()

    def close(self) -> None:
        """Close every player connection."""
        for conn in self.connections:
            conn.close()


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the server; an optional single argument seeds the shuffle."""
    args = list(sys.argv[1:] if argv is None else argv)
    seed = _atoi(args[0]) if len(args) == 1 else 0
    game = init_game_state(STARTING_STACK, seed)

    try:
        listeners = open_listeners()
    except OSError as exc:
        print(f"[Server] failed to listen: {exc}", file=sys.stderr)
        return 1

    status = 0
    try:
        connections = accept_players(listeners)
        with PokerServer(game, connections) as server:
            server.read_joins()
            server.play()
    except OSError as exc:
        print(f"[Server] connection error: {exc}", file=sys.stderr)
        status = 1
    finally:
        _say("[Server] Shutting down.")
        for listener in listeners:
            listener.close()
    return status


if __name__ == "__main__":
    sys.exit(main())