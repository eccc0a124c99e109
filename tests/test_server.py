import socket

import pytest

from holdem.game import PlayerStatus, RoundStage, init_game_state
from holdem.protocol import (
    SERVER_PACKET_SIZE,
    ClientPacket,
    ClientPacketType,
    ServerPacket,
    ServerPacketType,
)
from holdem.server import PokerServer, accept_players

J = ClientPacketType
S = ServerPacketType


class FakeConnection:
    def __init__(self, *packets):
        self.inbound = bytearray(b"".join(p.pack() for p in packets))
        self.sent = bytearray()
        self.closed = False

    def recv(self, size):
        chunk = bytes(self.inbound[:size])
        del self.inbound[:size]
        return chunk

    def sendall(self, data):
        if self.closed:
            raise OSError("closed")
        self.sent += data

    def close(self):
        self.closed = True

    def packets(self):
        data = bytes(self.sent)
        return [
            ServerPacket.unpack(data[i:i + SERVER_PACKET_SIZE])
            for i in range(0, len(data), SERVER_PACKET_SIZE)
        ]

    def types(self):
        return [p.packet_type for p in self.packets()]


def p(kind, param=0):
    return ClientPacket(kind, param)


def make_server(streams, seated=(0, 1), stage=RoundStage.FLOP, dealer=0, current=1):
    conns = [FakeConnection(*stream) for stream in streams]
    game = init_game_state(100, 0)
    game.round_stage = stage
    game.player_status = [
        PlayerStatus.ACTIVE if pid in seated else PlayerStatus.LEFT for pid in range(6)
    ]
    game.dealer_player = dealer
    game.current_player = current
    return PokerServer(game, conns), conns


def six(**by_seat):
    return [by_seat.get(f"p{i}", []) for i in range(6)]


def test_requires_six_connections():
    with pytest.raises(ValueError):
        PokerServer(init_game_state(100, 0), [FakeConnection()] * 5)


def test_betting_all_check():
    server, conns = make_server(six(p0=[p(J.CHECK)], p1=[p(J.CHECK)]))
    assert server.do_betting() is False
    assert conns[1].types() == [S.ACK, S.INFO]
    assert conns[0].types() == [S.INFO, S.ACK]
    assert server.game.current_player == 1
    assert all(not c.sent for c in conns[2:])


def test_betting_fold_ends_hand():
    server, conns = make_server(six(p1=[p(J.FOLD)]))
    assert server.do_betting() is True
    assert server.game.player_status[1] is PlayerStatus.FOLDED
    assert conns[1].types() == [S.ACK]
    assert conns[0].types() == []


def test_betting_nack_repeats_turn():
    server, conns = make_server(six(p0=[p(J.CHECK)], p1=[p(J.CALL), p(J.CHECK)]))
    assert server.do_betting() is False
    assert conns[1].types() == [S.NACK, S.ACK, S.INFO]
    assert not conns[1].inbound


def test_betting_raise_and_call():
    server, conns = make_server(six(p0=[p(J.CALL)], p1=[p(J.RAISE, 10)]))
    assert server.do_betting() is False
    game = server.game
    assert game.current_bets[0] == game.current_bets[1] == 10
    assert game.pot_size == sum(game.current_bets)


def test_raise_reopens_round_for_others():
    streams = six(
        p0=[p(J.CALL)],
        p1=[p(J.CHECK), p(J.CALL)],
        p2=[p(J.RAISE, 5)],
    )
    server, conns = make_server(streams, seated=(0, 1, 2))
    assert server.do_betting() is False
    assert server.game.current_bets[:3] == [5, 5, 5]
    assert all(not c.inbound for c in conns)
    assert server.game.current_player == 1


def test_betting_disconnect_raises():
    server, _ = make_server(six())
    with pytest.raises(ConnectionError):
        server.do_betting()


def test_broadcast_info_skips_left_players():
    server, conns = make_server(six(), seated=(0, 3))
    server.game.player_hands[0] = [4, 5]
    server.game.player_hands[3] = [20, 33]
    server.broadcast_info()
    assert conns[0].packets()[0].info.player_cards == [4, 5]
    assert conns[3].packets()[0].info.player_cards == [20, 33]
    assert conns[1].sent == b""


def test_broadcast_end_names_winner():
    server, conns = make_server(six())
    server.broadcast_end(1)
    for conn in conns[:2]:
        (packet,) = conn.packets()
        assert packet.packet_type is S.END
        assert packet.end.winner == 1


def test_read_joins(capsys):
    server, conns = make_server([[p(J.JOIN)] for _ in range(6)])
    server.read_joins()
    assert server.game.round_stage is RoundStage.JOIN
    assert all(not c.inbound for c in conns)
    assert "Player 3 sent JOIN" in capsys.readouterr().out


def test_play_broke_player_is_removed():
    streams = six(p0=[p(J.READY)], p1=[p(J.READY)])
    for seat in range(2, 6):
        streams[seat] = [p(J.LEAVE)]
    server, conns = make_server(streams, stage=RoundStage.INIT)
    server.game.player_stacks[0] = 0
    server.play()
    assert conns[0].closed
    assert conns[0].sent == b""
    assert conns[1].types() == [S.HALT]


def test_accept_players_over_real_sockets():
    listeners = [socket.create_server(("127.0.0.1", 0)) for _ in range(2)]
    clients = []
    conns = []
    try:
        clients = [socket.create_connection(l.getsockname()[:2]) for l in listeners]
        conns = accept_players(listeners)
        assert len(conns) == 2
        clients[1].sendall(b"hi")
        assert conns[1].recv(2) == b"hi"
    finally:
        for sock in [*listeners, *clients, *conns]:
            sock.close()