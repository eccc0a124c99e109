import pytest

from holdem.actions import (
    build_end_packet,
    build_info_packet,
    handle_client_action,
    status_code,
)
from holdem.game import PlayerStatus, RoundStage, init_game_state
from holdem.protocol import ClientPacket, ClientPacketType, ServerPacket, ServerPacketType

ACK = ServerPacketType.ACK
NACK = ServerPacketType.NACK


def betting_game(stage=RoundStage.PREFLOP, current=2):
    game = init_game_state(100, 0)
    game.round_stage = stage
    game.player_status = [PlayerStatus.ACTIVE] * 6
    game.current_player = current
    return game


def pkt(kind, param=0):
    return ClientPacket(kind, param)


def test_status_codes():
    assert status_code(PlayerStatus.ACTIVE) == 1
    assert status_code(PlayerStatus.ALLIN) == 1
    assert status_code(PlayerStatus.FOLDED) == 0
    assert status_code(PlayerStatus.LEFT) == 2


def test_ready_in_init_activates_player():
    game = init_game_state(100, 0)
    game.round_stage = RoundStage.INIT
    assert handle_client_action(game, 3, pkt(ClientPacketType.READY)) is ACK
    assert game.player_status[3] is PlayerStatus.ACTIVE


def test_ready_outside_init_is_refused():
    game = betting_game()
    assert handle_client_action(game, 1, pkt(ClientPacketType.READY)) is NACK


def test_ready_without_chips_marks_left():
    game = init_game_state(100, 0)
    game.round_stage = RoundStage.INIT
    game.player_stacks[4] = 0
    assert handle_client_action(game, 4, pkt(ClientPacketType.READY)) is NACK
    assert game.player_status[4] is PlayerStatus.LEFT


def test_leave_in_init():
    game = init_game_state(100, 0)
    game.round_stage = RoundStage.INIT
    assert handle_client_action(game, 0, pkt(ClientPacketType.LEAVE)) is ACK
    assert game.player_status[0] is PlayerStatus.LEFT


def test_leave_during_hand_is_refused():
    game = betting_game()
    assert handle_client_action(game, 2, pkt(ClientPacketType.LEAVE)) is NACK
    assert game.player_status[2] is PlayerStatus.ACTIVE


def test_raise_moves_chips_into_pot():
    game = betting_game()
    assert handle_client_action(game, 2, pkt(ClientPacketType.RAISE, 10)) is ACK
    assert game.current_bets[2] == 10
    assert game.highest_bet == 10
    assert game.pot_size == 10
    assert game.player_stacks[2] + game.current_bets[2] == 100


def test_raise_out_of_turn_is_refused():
    game = betting_game(current=2)
    assert handle_client_action(game, 1, pkt(ClientPacketType.RAISE, 10)) is NACK
    assert game.pot_size == 0


@pytest.mark.parametrize("amount", [0, -5, 101])
def test_raise_bad_amount_is_refused(amount):
    game = betting_game()
    assert handle_client_action(game, 2, pkt(ClientPacketType.RAISE, amount)) is NACK
    assert game.player_stacks[2] == 100


def test_raise_must_exceed_highest_bet():
    game = betting_game()
    game.highest_bet = 20
    assert handle_client_action(game, 2, pkt(ClientPacketType.RAISE, 20)) is NACK
    assert handle_client_action(game, 2, pkt(ClientPacketType.RAISE, 21)) is ACK
    assert game.highest_bet == 21


def test_raise_outside_betting_stage_is_refused():
    game = betting_game(stage=RoundStage.SHOWDOWN)
    assert handle_client_action(game, 2, pkt(ClientPacketType.RAISE, 10)) is NACK


def test_call_matches_highest_bet():
    game = betting_game()
    game.highest_bet = 10
    assert handle_client_action(game, 2, pkt(ClientPacketType.CALL)) is ACK
    assert game.current_bets[2] == game.highest_bet
    assert game.pot_size == game.highest_bet
    assert game.player_status[2] is PlayerStatus.ACTIVE


def test_call_with_exact_stack_goes_all_in():
    game = betting_game()
    game.highest_bet = 100
    assert handle_client_action(game, 2, pkt(ClientPacketType.CALL)) is ACK
    assert game.player_status[2] is PlayerStatus.ALLIN
    assert game.player_stacks[2] == 0


def test_call_without_bet_is_refused():
    game = betting_game()
    assert handle_client_action(game, 2, pkt(ClientPacketType.CALL)) is NACK


def test_call_beyond_stack_is_refused():
    game = betting_game()
    game.highest_bet = 150
    assert handle_client_action(game, 2, pkt(ClientPacketType.CALL)) is NACK
    assert game.player_stacks[2] == 100


def test_call_when_already_matched_is_refused():
    game = betting_game()
    game.highest_bet = 10
    game.current_bets[2] = 10
    assert handle_client_action(game, 2, pkt(ClientPacketType.CALL)) is NACK


def test_check_only_without_bet():
    game = betting_game()
    assert handle_client_action(game, 2, pkt(ClientPacketType.CHECK)) is ACK
    game.highest_bet = 5
    assert handle_client_action(game, 2, pkt(ClientPacketType.CHECK)) is NACK


def test_fold_marks_player_folded():
    game = betting_game(stage=RoundStage.RIVER)
    assert handle_client_action(game, 2, pkt(ClientPacketType.FOLD)) is ACK
    assert game.player_status[2] is PlayerStatus.FOLDED


def test_fold_out_of_turn_is_refused():
    game = betting_game()
    assert handle_client_action(game, 4, pkt(ClientPacketType.FOLD)) is NACK
    assert game.player_status[4] is PlayerStatus.ACTIVE


def test_folded_player_cannot_act_during_hand():
    game = betting_game()
    game.player_status[2] = PlayerStatus.FOLDED
    assert handle_client_action(game, 2, pkt(ClientPacketType.CHECK)) is NACK


def test_folded_player_may_ready_in_init():
    game = init_game_state(100, 0)
    game.round_stage = RoundStage.INIT
    game.player_status[2] = PlayerStatus.FOLDED
    assert handle_client_action(game, 2, pkt(ClientPacketType.READY)) is ACK
    assert game.player_status[2] is PlayerStatus.ACTIVE


def test_join_is_never_accepted():
    game = betting_game()
    assert handle_client_action(game, 2, pkt(ClientPacketType.JOIN)) is NACK


def test_info_packet_reflects_game():
    game = betting_game(current=3)
    game.player_hands[1] = [7, 40]
    game.community_cards = [1, 2, 3, -1, -1]
    game.pot_size = 30
    game.highest_bet = 15
    game.dealer_player = 5
    game.player_status[0] = PlayerStatus.FOLDED
    game.player_status[4] = PlayerStatus.LEFT
    game.player_status[5] = PlayerStatus.ALLIN
    packet = build_info_packet(game, 1)
    assert packet.packet_type is ServerPacketType.INFO
    info = packet.info
    assert info.player_cards == [7, 40]
    assert info.community_cards == [1, 2, 3, -1, -1]
    assert info.pot_size == 30
    assert info.bet_size == 15
    assert info.dealer == 5
    assert info.player_turn == 3
    assert info.player_stacks == game.player_stacks
    assert info.player_status == [0, 1, 1, 1, 2, 1]


def test_info_packet_is_a_copy():
    game = betting_game()
    info = build_info_packet(game, 0).info
    game.player_stacks[0] = 1
    assert info.player_stacks[0] == 100


def test_info_packet_round_trips_on_wire():
    game = betting_game()
    game.player_hands[2] = [51, 0]
    packet = build_info_packet(game, 2)
    assert ServerPacket.unpack(packet.pack()) == packet


def test_end_packet_reflects_game():
    game = betting_game()
    game.player_hands = [[i, i + 6] for i in range(6)]
    game.pot_size = 40
    game.dealer_player = 1
    game.player_status[3] = PlayerStatus.LEFT
    packet = build_end_packet(game, 4)
    assert packet.packet_type is ServerPacketType.END
    end = packet.end
    assert end.winner == 4
    assert end.pot_size == 40
    assert end.dealer == 1
    assert end.player_cards == game.player_hands
    assert end.player_status[3] == 2
    assert ServerPacket.unpack(packet.pack()) == packet