import socket

import pytest

from holdem.cards import NOCARD, card_id
from holdem.client import ClientError, PokerClient, log_end_packet, log_info_packet
from holdem.logs import log_fini, log_player_init
from holdem.protocol import (
    CLIENT_PACKET_SIZE,
    ClientPacket,
    ClientPacketType,
    EndPacket,
    InfoPacket,
    ServerPacket,
    ServerPacketType,
)


def read_client_packet(conn):
    data = b""
    while len(data) < CLIENT_PACKET_SIZE:
        chunk = conn.recv(CLIENT_PACKET_SIZE - len(data))
        assert chunk
        data += chunk
    return ClientPacket.unpack(data)


@pytest.fixture
def session():
    with socket.create_server(("127.0.0.1", 0)) as listener:
        client = PokerClient(0)
        client.port = listener.getsockname()[1]
        client.timeout = 5
        client.connect()
        conn, _ = listener.accept()
        conn.settimeout(5)
        try:
            yield client, conn
        finally:
            conn.close()
            client.disconnect()


def test_connect_sends_join(session):
    _, conn = session
    assert read_client_packet(conn) == ClientPacket(ClientPacketType.JOIN, 0)


def test_call_acknowledged(session):
    client, conn = session
    read_client_packet(conn)
    conn.sendall(ServerPacket(ServerPacketType.ACK).pack())
    assert client.call() is True
    assert read_client_packet(conn).packet_type is ClientPacketType.CALL


def test_fold_rejected(session):
    client, conn = session
    read_client_packet(conn)
    conn.sendall(ServerPacket(ServerPacketType.NACK).pack())
    assert client.fold() is False


def test_raise_sends_amount(session):
    client, conn = session
    read_client_packet(conn)
    conn.sendall(ServerPacket(ServerPacketType.ACK).pack())
    assert client.bet_raise(25) is True
    assert read_client_packet(conn) == ClientPacket(ClientPacketType.RAISE, 25)


def test_ready_and_leave_need_no_response(session):
    client, conn = session
    read_client_packet(conn)
    assert client.ready() is True
    assert client.leave() is True
    assert read_client_packet(conn).packet_type is ClientPacketType.READY
    assert read_client_packet(conn).packet_type is ClientPacketType.LEAVE


def test_recv_info_dispatches_and_sets_turn(session):
    client, conn = session
    read_client_packet(conn)
    seen = []
    client.on_info = seen.append
    info = InfoPacket(player_turn=0, pot_size=15)
    conn.sendall(ServerPacket(ServerPacketType.INFO, info=info).pack())
    packet = client.recv_packet()
    assert packet.info == info
    assert seen == [info]
    assert client.is_players_turn(0) is True
    assert client.is_players_turn(1) is False


def test_recv_end_dispatches(session):
    client, conn = session
    read_client_packet(conn)
    seen = []
    client.on_end = seen.append
    end = EndPacket(winner=4, pot_size=40)
    conn.sendall(ServerPacket(ServerPacketType.END, end=end).pack())
    client.recv_packet()
    assert seen == [end]
    assert client.is_players_turn(0) is False


def test_recv_halt(session):
    client, conn = session
    read_client_packet(conn)
    called = []
    client.on_halt = lambda: called.append(True)
    assert client.has_recv_halt() is False
    conn.sendall(ServerPacket(ServerPacketType.HALT).pack())
    packet = client.recv_packet()
    assert packet.packet_type is ServerPacketType.HALT
    assert client.has_recv_halt() is True
    assert called == [True]


def test_recv_after_server_closes(session):
    client, conn = session
    read_client_packet(conn)
    conn.close()
    with pytest.raises(ClientError):
        client.recv_packet()


def test_disconnect_is_reported():
    with socket.create_server(("127.0.0.1", 0)) as listener:
        client = PokerClient(2)
        client.port = listener.getsockname()[1]
        client.connect()
        assert client.connected is True
        assert client.disconnect() is True
        assert client.disconnect() is False
        assert client.connected is False


def test_send_without_connection_raises():
    with pytest.raises(ClientError):
        PokerClient(1).call()


def test_is_players_turn_without_packets():
    assert PokerClient(3).is_players_turn(3) is False


def test_invalid_player_id():
    with pytest.raises(ValueError):
        PokerClient(6)


def test_connect_refused(capsys):
    probe = socket.create_server(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    client = PokerClient(0)
    client.port = port
    client.connect_delays = (0,)
    with pytest.raises(ClientError):
        client.connect()
    assert "Failed to connect (Attempt #0)" in capsys.readouterr().err
    assert client.connected is False


def test_log_info_packet(tmp_path):
    info = InfoPacket(
        player_cards=[card_id("Ad"), card_id("Ks")],
        community_cards=[card_id("2c"), card_id("3h"), card_id("4d"), NOCARD, NOCARD],
        pot_size=30,
        dealer=1,
        player_turn=2,
        bet_size=10,
    )
    log_player_init(3, tmp_path)
    log_info_packet(info)
    log_fini()
    lines = (tmp_path / "player3.logs").read_text().splitlines()
    assert lines[0] == "[INFO] [INFO_PACKET] pot_size=30, player_turn=2, dealer=1, bet_size=10"
    assert lines[1] == "[INFO] [INFO_PACKET] Your Cards: Ad Ks"
    assert lines[2] == "[INFO] [INFO_PACKET] Community Card 0: 2c"
    assert sum("Community Card" in line for line in lines) == 3
    assert sum("[INFO_PACKET] Player" in line for line in lines) == 6


def test_log_end_packet(tmp_path):
    end = EndPacket(pot_size=50, winner=5, dealer=0)
    end.player_cards[1] = [card_id("Th"), card_id("9s")]
    log_player_init(4, tmp_path)
    log_end_packet(end)
    log_fini()
    lines = (tmp_path / "player4.logs").read_text().splitlines()
    assert lines[0] == "[INFO] [END_PACKET] pot_size=50, winner=5, dealer=0"
    assert "[INFO] [END_PACKET] Player 1 Final Stack=0, Cards: Th 9s" in lines
    assert len(lines) == 7