"""Terminal user interface for a poker seat, drawn with curses."""

from __future__ import annotations

import curses
import locale
import os
import sys
from typing import Any, Callable, Sequence

from holdem.automated import parse_player_id
from holdem.cards import fancy_card_name
from holdem.client import ClientError, PokerClient
from holdem.logs import log_err, log_fini, log_info, log_init
from holdem.protocol import MAX_PLAYERS, EndPacket, InfoPacket
from holdem.tui_layout import (
    BET_PROMPT_PANEL,
    BET_PROMPT_PANEL_HEIGHT,
    BET_PROMPT_PANEL_WIDTH,
    COMMUNITY_PANEL,
    COMMUNITY_PANEL_HEIGHT,
    COMMUNITY_PANEL_WIDTH,
    MAX_BET_INPUT,
    PLAYER_PANEL,
    PLAYER_PANEL_HEIGHT,
    PLAYER_PANEL_WIDTH,
    POKER_BUTTON_WIDTHS,
    POT_PANEL,
    POT_PANEL_HEIGHT,
    POT_PANEL_WIDTH,
    BetAction,
    BetInput,
    Button,
    bet_prompt_anchor,
    button_anchors,
    community_anchor,
    format_money,
    parse_bet_input,
    player_panel_anchors,
    pot_panel_anchor,
)

MIN_ROWS = 24
MIN_COLS = 80
PLAYER_NAMES = tuple(f"Player {pid}" for pid in range(MAX_PLAYERS))

CLICK_MASK = (
    curses.BUTTON1_CLICKED
    | curses.BUTTON2_CLICKED
    | curses.BUTTON3_CLICKED
    | curses.BUTTON4_CLICKED
)
MOUSE_MASK = CLICK_MASK | curses.REPORT_MOUSE_POSITION

_BACKSPACE_KEYS = frozenset({curses.KEY_BACKSPACE, 127, 8})
_ENTER_KEYS = frozenset({10, 13, curses.KEY_ENTER})
_TRACK_ALL_MOTION_ON = "\033[?1003h\n"
_TRACK_ALL_MOTION_OFF = "\033[?1003l\n"


def _put(window: Any, y: int, x: int, text: str) -> None:
    """Write text, ignoring the error curses raises at a window's last cell."""
    try:
        window.addstr(y, x, text)
    except curses.error:
        pass


def _terminal(fn: Callable[..., Any], *args: Any) -> None:
    """Call a terminal-wide curses function, ignoring it before curses is set up."""
    try:
        fn(*args)
    except curses.error:
        pass


def _draw_art(window: Any, art: Sequence[str]) -> None:
    for row, line in enumerate(art):
        _put(window, row, 0, line)
    window.refresh()


class PokerScreen:
    """The poker table drawn on one curses window."""

    def __init__(self, window: Any) -> None:
        self.window = window
        max_y, max_x = window.getmaxyx()
        self.player_anchors = player_panel_anchors(max_x, max_y)
        self.pot_anchor = pot_panel_anchor(max_x)
        self.community_anchor = community_anchor(max_x)
        self.bet_prompt_anchor = bet_prompt_anchor(max_x)
        self.button_anchors = button_anchors(max_x)
        self.highlight_attr = 0
        self.mouse_reader: Callable[[], tuple[int, int, int, int, int]] = curses.getmouse

        self.player_panels = [
            window.derwin(PLAYER_PANEL_HEIGHT, PLAYER_PANEL_WIDTH, a.y, a.x)
            for a in self.player_anchors
        ]
        self.pot_panel = window.derwin(
            POT_PANEL_HEIGHT, POT_PANEL_WIDTH, self.pot_anchor.y, self.pot_anchor.x
        )
        self.community_panel = window.derwin(
            COMMUNITY_PANEL_HEIGHT,
            COMMUNITY_PANEL_WIDTH,
            self.community_anchor.y,
            self.community_anchor.x,
        )
        self.buttons: list[Button] = []
        self.button_panels: list[Any] = []
        for anchor, width in zip(self.button_anchors, POKER_BUTTON_WIDTHS):
            button = Button(anchor, width, 1)
            rows, cols = button.panel_size
            self.button_panels.append(window.derwin(rows, cols, anchor.y, anchor.x))
            button.on_hover = self._on_hover
            button.on_unhover = self._on_unhover
            self.buttons.append(button)
        self.bet_prompt_panel = window.derwin(
            BET_PROMPT_PANEL_HEIGHT,
            BET_PROMPT_PANEL_WIDTH,
            self.bet_prompt_anchor.y,
            self.bet_prompt_anchor.x,
        )

    # -- buttons -------------------------------------------------------------

    def _panel_of(self, button: Button) -> Any:
        return self.button_panels[self.buttons.index(button)]

    def _on_hover(self, button: Button) -> None:
        panel = self._panel_of(button)
        panel.attron(self.highlight_attr)
        panel.box()
        panel.attroff(self.highlight_attr)
        panel.refresh()

    def _on_unhover(self, button: Button) -> None:
        panel = self._panel_of(button)
        panel.box()
        panel.refresh()

    def set_button(self, index: int, label: str, on_click: Callable[[Button], None]) -> None:
        """Draw a button with its label and give it a click action."""
        panel = self.button_panels[index]
        panel.box()
        _put(panel, 1, 1, label)
        panel.refresh()
        self.buttons[index].on_click = on_click

    def enable_buttons(self, *indices: int) -> None:
        """Let the given buttons (all when none are named) react to the mouse."""
        for index in indices or range(len(self.buttons)):
            self.buttons[index].active = True

    def disable_buttons(self) -> None:
        """Make every button ignore the mouse."""
        for button in self.buttons:
            button.active = False

    def process_mouse(self, x: int, y: int, clicked: bool) -> None:
        """Pass a mouse event to every button."""
        for button in self.buttons:
            button.process_event(x, y, clicked)

    def next_mouse_event(self) -> tuple[int, int, bool] | None:
        """Wait for a key; return (x, y, clicked) if it was a mouse event."""
        if self.window.getch() != curses.KEY_MOUSE:
            return None
        try:
            _, x, y, _, bstate = self.mouse_reader()
        except curses.error:
            return None
        return x, y, bool(bstate & CLICK_MASK)

    # -- drawing -------------------------------------------------------------

    def draw_base(self) -> None:
        """Draw the border and the empty player, pot and community panels."""
        self.window.clear()
        self.window.box()
        _put(self.window, 0, 2, f" POKER [{os.getpid()}] ")
        for panel in self.player_panels:
            _draw_art(panel, PLAYER_PANEL)
        _draw_art(self.pot_panel, POT_PANEL)
        _draw_art(self.community_panel, COMMUNITY_PANEL)
        self.window.refresh()

    def _write_player(self, pid: int, y: int, x: int, text: str) -> None:
        panel = self.player_panels[pid]
        _put(panel, y, x, text)
        panel.refresh()

    def _write_name_and_stack(self, pid: int, stack: int) -> None:
        self._write_player(pid, 1, 2, PLAYER_NAMES[pid][:8])
        self._write_player(pid, 1, 13, format_money(stack, 8))

    def _write_cards(self, pid: int, cards: Sequence[int]) -> None:
        self._write_player(pid, 3, 8, fancy_card_name(cards[0]))
        self._write_player(pid, 3, 13, fancy_card_name(cards[1]))

    def _write_pot(self, row: int, amount: int) -> None:
        _put(self.pot_panel, row, 8, format_money(amount, 9))
        self.pot_panel.refresh()

    def _write_community(self, cards: Sequence[int]) -> None:
        for index, card in enumerate(cards):
            _put(self.community_panel, 1, index * 5 + 2, fancy_card_name(card))
        self.community_panel.refresh()

    def draw_info(self, pkt: InfoPacket, player_id: int) -> None:
        """Draw the table as described by an INFO packet, seen by player_id."""
        self.draw_base()
        self._write_pot(1, pkt.pot_size)
        self._write_pot(3, pkt.bet_size)
        for pid in range(MAX_PLAYERS):
            status = pkt.player_status[pid]
            if status == 2:
                continue
            self._write_name_and_stack(pid, pkt.player_stacks[pid])
            if status == 0:
                self._write_player(pid, 3, 18, "[F]")
        self._write_cards(player_id, pkt.player_cards)
        if 0 <= pkt.dealer < MAX_PLAYERS:
            self._write_player(pkt.dealer, 3, 2, "[D]")
        if 0 <= pkt.player_turn < MAX_PLAYERS:
            self._write_player(pkt.player_turn, 3, 18, "[*]")
        self._write_community(pkt.community_cards)

    def draw_end(self, pkt: EndPacket) -> None:
        """Draw the result of a hand as described by an END packet."""
        self.draw_base()
        self._write_pot(1, pkt.pot_size)
        if 0 <= pkt.winner < MAX_PLAYERS:
            self._write_player(pkt.winner, 3, 18, "[W]")
        for pid in range(MAX_PLAYERS):
            if pkt.player_status[pid] == 2:
                continue
            self._write_name_and_stack(pid, pkt.player_stacks[pid])
            self._write_cards(pid, pkt.player_cards[pid])
        self._write_community(pkt.community_cards)

    def read_bet(self, check_enabled: bool) -> BetInput:
        """Prompt until a valid move is typed: fold, check or call, or a raise amount."""
        self.disable_buttons()
        row = self.bet_prompt_anchor.y + 2
        col = self.bet_prompt_anchor.x + 2
        while True:
            _draw_art(self.bet_prompt_panel, BET_PROMPT_PANEL)
            self.window.move(row, col)
            typed: list[str] = []
            while len(typed) < MAX_BET_INPUT:
                ch = self.window.getch()
                if ch in _BACKSPACE_KEYS:
                    if typed:
                        typed.pop()
                        _put(self.window, row, col + len(typed), " ")
                    self.window.move(row, col + len(typed))
                    continue
                if ch in _ENTER_KEYS:
                    break
                if 0 <= ch < 256:
                    _put(self.window, row, col + len(typed), chr(ch))
                    typed.append(chr(ch).lower())
            self.window.refresh()
            choice = parse_bet_input("".join(typed), check_enabled)
            if choice is not None:
                return choice


class TuiClient:
    """Drives the poker screen from the packets a client receives."""

    def __init__(self, client: PokerClient, screen: PokerScreen) -> None:
        self.client = client
        self.screen = screen
        self.finished = False
        self.last_info: InfoPacket | None = None
        self._acted = False
        self._redraw = False
        client.on_info = self.game_screen
        client.on_end = self.ready_leave_screen
        client.on_halt = self.on_halt

    def _shutdown(self) -> None:
        if self.finished:
            return
        self.finished = True
        _terminal(curses.flushinp)
        self.client.disconnect()
        log_info("TUI fini.")

    def _await_click(self) -> None:
        self._acted = False
        self._redraw = False
        while not (self._acted or self._redraw or self.finished):
            event = self.screen.next_mouse_event()
            if event is not None:
                self.screen.process_mouse(*event)

    def _outcome(self, accepted: bool, name: str) -> None:
        if accepted:
            self._acted = True
        else:
            log_err(f"sending {name} packet failed.")

    def _send_ready(self, button: Button) -> None:
        self._outcome(self.client.ready(), "READY")

    def _send_leave(self, button: Button) -> None:
        if self.client.leave():
            self._acted = True
            self._shutdown()
        else:
            log_err("sending LEAVE packet failed.")

    def _send_check(self, button: Button) -> None:
        self._outcome(self.client.check(), "CHECK")

    def _send_call(self, button: Button) -> None:
        self._outcome(self.client.call(), "CALL")

    def _send_fold(self, button: Button) -> None:
        self._outcome(self.client.fold(), "FOLD")

    def _send_raise(self, button: Button) -> None:
        check_enabled = self.last_info is None or self.last_info.bet_size == 0
        _terminal(curses.mousemask, 0)
        _terminal(curses.curs_set, 1)
        choice = self.screen.read_bet(check_enabled)
        _terminal(curses.mousemask, MOUSE_MASK)
        _terminal(curses.curs_set, 0)

        if choice.action is BetAction.FOLD:
            accepted, name = self.client.fold(), "FOLD"
        elif choice.action is BetAction.CHECK:
            accepted, name = self.client.check(), "CHECK"
        elif choice.action is BetAction.CALL:
            accepted, name = self.client.call(), "CALL"
        else:
            accepted, name = self.client.bet_raise(choice.amount), "RAISE"
        self._outcome(accepted, name)
        if not accepted:
            self._redraw = True

    def ready_leave_screen(self, pkt: EndPacket | None) -> None:
        """Show the last result, if any, and wait for READY or LEAVE to be accepted."""
        screen = self.screen
        if pkt is None:
            screen.draw_base()
        else:
            screen.draw_end(pkt)
        screen.disable_buttons()
        screen.set_button(0, " READY  ", self._send_ready)
        screen.set_button(2, "  LEAVE ", self._send_leave)
        _terminal(curses.flushinp)
        screen.enable_buttons(0, 2)
        while not (self._acted_once() or self.finished):
            self._await_click()

    def _acted_once(self) -> bool:
        acted, self._acted = self._acted, False
        return acted

    def game_screen(self, pkt: InfoPacket) -> None:
        """Show the table; on this player's turn, wait for an accepted move."""
        self.last_info = pkt
        screen = self.screen
        player_id = self.client.player_id
        while not self.finished:
            screen.disable_buttons()
            screen.draw_info(pkt, player_id)
            if not self.client.is_players_turn(player_id):
                return
            if pkt.bet_size == 0:
                screen.set_button(0, " CHECK  ", self._send_check)
                screen.set_button(1, "   BET   ", self._send_raise)
            else:
                screen.set_button(0, "  CALL  ", self._send_call)
                screen.set_button(1, "  RAISE  ", self._send_raise)
            screen.set_button(2, "  FOLD  ", self._send_fold)
            _terminal(curses.flushinp)
            screen.enable_buttons()
            self._await_click()
            if self._acted:
                self._acted = False
                return

    def on_halt(self) -> None:
        """Stop when the server halts the table."""
        self._shutdown()

    def run(self) -> None:
        """Wait for READY or LEAVE, then follow the server until the game ends."""
        try:
            self.ready_leave_screen(None)
            while not self.finished:
                self.client.recv_packet()
        except ClientError as exc:
            log_err(str(exc))
        finally:
            self._shutdown()


def _run_tui(stdscr: Any, client: PokerClient) -> int:
    log_info("TUI init.")
    max_y, max_x = stdscr.getmaxyx()
    if max_y < MIN_ROWS or max_x < MIN_COLS:
        _put(
            stdscr,
            1,
            1,
            "Please make the terminal at least 24 rows by 80 columns large. "
            "Press any key to exit...",
        )
        stdscr.getch()
        return 1

    stdscr.keypad(True)
    _terminal(curses.raw)
    _terminal(curses.noecho)
    _terminal(curses.curs_set, 0)
    curses.mousemask(MOUSE_MASK)
    sys.stdout.write(_TRACK_ALL_MOTION_ON)
    sys.stdout.flush()
    try:
        curses.init_pair(1, curses.COLOR_GREEN, curses.COLOR_BLACK)
        screen = PokerScreen(stdscr)
        screen.highlight_attr = curses.color_pair(1)
        TuiClient(client, screen).run()
    finally:
        sys.stdout.write(_TRACK_ALL_MOTION_OFF)
        sys.stdout.flush()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Start the terminal client for the seat named on the command line."""
    args = list(sys.argv[1:] if argv is None else argv)
    log_init("client")
    locale.setlocale(locale.LC_ALL, "")
    if len(args) != 1:
        print(f"incorrect number of args. expecting 1, got {len(args)}.", file=sys.stderr)
        return 1
    try:
        player_id = parse_player_id(args[0])
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    client = PokerClient(player_id)
    try:
        client.connect()
    except ClientError:
        log_err(f"Failed to connect to server as player {player_id}. Exiting...")
        log_fini()
        return 1

    try:
        return curses.wrapper(_run_tui, client)
    finally:
        client.disconnect()
        log_fini()


if __name__ == "__main__":
    sys.exit(main())