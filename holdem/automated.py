"""A scripted poker player that reads its moves from a text stream.

Supported commands: ready, leave, raise AMOUNT, raise allin, call, check, fold.
Once the input runs out the player folds on its turns and leaves at the end
of the hand.
"""

from __future__ import annotations

import re
import sys
from typing import Callable, Sequence, TextIO

from holdem.cards import NOCARD, card_name
from holdem.client import ClientError, PokerClient
from holdem.logs import log_err, log_fini, log_info, log_player_init
from holdem.protocol import MAX_PLAYERS, EndPacket, InfoPacket, ServerPacketType

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def count_words(line: str) -> int:
    """Return the number of whitespace separated words in a line."""
    return len(line.split())


def _community_line(cards: list[int]) -> list[str]:
    if cards[0] == NOCARD:
        return []
    return ["COMMUNITY CARDS: " + " ".join(card_name(c) for c in cards)]


def format_info(pkt: InfoPacket) -> str:
    """Render an INFO packet the way the player sees it."""
    lines = [
        "",
        f"PLAYERS {pkt.player_turn} TURN:",
        f"DEALER: PLAYER {pkt.dealer}",
        f"POT SIZE: {pkt.pot_size}",
        f"BET SIZE: {pkt.bet_size}",
        f"YOUR CARDS: {card_name(pkt.player_cards[0])} {card_name(pkt.player_cards[1])}",
        *_community_line(pkt.community_cards),
    ]
    for pid in range(MAX_PLAYERS):
        status = pkt.player_status[pid]
        stack = pkt.player_stacks[pid]
        if status == 1:
            lines.append(f"\tPLAYER {pid} [ STACK = {stack} | BET = {pkt.player_bets[pid]} ]")
        elif status == 0:
            lines.append(f"\tPLAYER {pid} [ STACK = {stack} | FOLDED ]")
    return "\n".join(lines) + "\n"


def format_end(pkt: EndPacket) -> str:
    """Render an END packet the way the player sees it."""
    lines = [
        "",
        f"WINNER: PLAYER {pkt.winner}",
        f"DEALER: PLAYER {pkt.dealer}",
        f"POT SIZE: {pkt.pot_size}",
        *_community_line(pkt.community_cards),
    ]
    for pid in range(MAX_PLAYERS):
        status = pkt.player_status[pid]
        hand = pkt.player_cards[pid]
        cards = f"{card_name(hand[0])} {card_name(hand[1])}"
        stack = pkt.player_stacks[pid]
        if status == 1:
            lines.append(f"\tPLAYER {pid} [ STACK = {stack} | CARDS = {cards} ]")
        elif status == 0:
            lines.append(f"\tPLAYER {pid} [ STACK = {stack} | CARDS = {cards} | FOLDED ]")
    return "\n".join(lines) + "\n"


def parse_player_id(text: str) -> int:
    """Parse a seat number given on the command line."""
    match = _INT_PREFIX.match(text)
    if match is None:
        raise ValueError("required arg is not integer.")
    player_id = int(match.group(1))
    if not 0 <= player_id < MAX_PLAYERS:
        raise ValueError("required arg is not in range.")
    return player_id


class AutomatedPlayer:
    """Plays one seat by reading commands from input_stream."""

    def __init__(self, client: PokerClient, input_stream: TextIO, output: TextIO) -> None:
        self.client = client
        self.input_stream = input_stream
        self.output = output
        self.done_reading = False
        self.finished = False
        self._commands: dict[str, tuple[int, Callable[..., bool]]] = {
            "ready": (0, self._ready),
            "leave": (0, self._leave),
            "raise": (1, self._raise),
            "call": (0, self._call),
            "check": (0, self._check),
            "fold": (0, self._fold),
        }
        client.on_info = self.on_info
        client.on_end = self.on_end
        client.on_halt = self.on_halt

    def _ready(self) -> bool:
        return self.client.ready()

    def _leave(self) -> bool:
        if self.client.leave():
            self._shutdown()
            return True
        return False

    def _raise(self, amount_text: str) -> bool:
        if amount_text == "allin":
            last = self.client.last_packet
            info = last.info if last is not None else None
            stack = info.player_stacks[self.client.player_id] if info is not None else 0
            return self.client.bet_raise(stack)
        amount = _atoi(amount_text)
        if amount == 0:
            return False
        return self.client.bet_raise(amount)

    def _call(self) -> bool:
        return self.client.call()

    def _check(self) -> bool:
        return self.client.check()

    def _fold(self) -> bool:
        return self.client.fold()

    def _shutdown(self) -> None:
        if self.finished:
            return
        self.finished = True
        self.client.disconnect()
        log_fini()

    def invoke_line(self, line: str) -> bool:
        """Run one command line; return whether the server accepted the move."""
        words = line.split()
        if not words:
            return False
        name, *args = words
        command = self._commands.get(name)
        if command is None:
            log_err(f"Unrecognized command: {name}\n")
            return False
        required, handler = command
        if len(args) != required:
            log_err(
                f"Wrong number of args (given: {len(args)}, required: {required}) "
                f"for CLI command '{name}'"
            )
            return False
        try:
            return handler(*args)
        except ClientError as exc:
            log_err(str(exc))
            return False

    def _prompt(self, default: str, eof_message: str) -> None:
        while not self.finished:
            if self.done_reading:
                if not self.invoke_line(default):
                    self._shutdown()
                return
            self.output.write("> ")
            self.output.flush()
            line = self.input_stream.readline()
            if not line:
                log_info(eof_message)
                self.done_reading = True
                continue
            if self.invoke_line(line.removesuffix("\n")):
                return

    def on_info(self, pkt: InfoPacket) -> None:
        """Show the table and, on this player's turn, read moves until one is accepted."""
        self.output.write(format_info(pkt))
        if self.client.is_players_turn(self.client.player_id):
            self._prompt("fold", "No more lines of input. Leaving when available.")

    def on_end(self, pkt: EndPacket | None) -> None:
        """Show the result of a hand and read commands until one is accepted."""
        if pkt is not None:
            self.output.write(format_end(pkt))
        self._prompt("leave", "No more lines of input. Exiting...")

    def on_halt(self) -> None:
        """Stop playing when the server halts the table."""
        self._shutdown()

    def run(self) -> None:
        """Play until leaving the table or the server halts."""
        try:
            self.on_end(None)
            while not self.finished:
                packet = self.client.recv_packet()
                if packet.packet_type is ServerPacketType.HALT and not self.finished:
                    self._shutdown()
        except ClientError as exc:
            log_err(str(exc))
        finally:
            self._shutdown()


def main(argv: Sequence[str] | None = None) -> int:
    """Start an automated player for the seat named on the command line."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print(f"incorrect number of args. expecting 1, got {len(args)}.", file=sys.stderr)
        return 1
    try:
        player_id = parse_player_id(args[0])
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    log_player_init(player_id)
    client = PokerClient(player_id)
    try:
        client.connect()
    except ClientError:
        log_err(f"Failed to connect to server as player {player_id}. Exiting...")
        log_fini()
        return 1

    AutomatedPlayer(client, sys.stdin, sys.stdout).run()
    client.disconnect()
    log_fini()
    return 0


if __name__ == "__main__":
    sys.exit(main())