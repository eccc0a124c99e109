# holdem

A six-seat Texas hold'em table played over TCP on the local machine. The
package holds a game server, a line-driven client that reads its moves from
standard input, and a curses client that you play with the mouse. It has no
dependencies outside the standard library.

## Installing

    pip install .

For running the tests:

    pip install ".[test]"
    pytest

## Playing

Start the server first. It listens on ports 2201 to 2206, one port per seat,
and waits until all six players have connected and sent their JOIN. An
optional integer argument seeds the deck shuffle, so the same seed gives the
same deals (without it the seed is 0):

    holdem-server 42

Then start one client per seat, giving the seat number from 0 to 5. Clients
connect to 127.0.0.1 on port 2201 plus the seat number, retrying for a few
seconds if the server is not up yet.

### Scripted client

    holdem-bot 0

It prints the table after each update and, when it is your turn or a hand has
ended, prompts with `> ` for one of these commands:

    ready          take part in the next hand
    leave          leave the table
    raise AMOUNT   put AMOUNT more chips in, above the current bet
    raise allin    put your whole stack in
    call           match the current bet
    check          pass when there is no bet
    fold           give up the hand

A command the server refuses is reported in the log and you are prompted
again. When input runs out, the client folds whenever it is asked to act and
leaves at the end of the hand, which makes it handy for playing recorded moves
from a file:

    holdem-bot 3 < moves.txt

It records every packet sent and received in `logs/player<N>.logs`. The
`logs` directory must already exist in the working directory; if it does not,
nothing is logged.

### Terminal client

    holdem-tui 1

This needs a terminal of at least 24 rows by 80 columns. Click READY or LEAVE
between hands, and CHECK/CALL, BET/RAISE or FOLD on your turn. After BET or
RAISE, type an amount, or `fold`, or `check` (when nothing has been bet) or
`call` (when something has), and press Enter. It logs to
`logs/client.<pid>` when a `logs` directory exists.

## Rules as played

Every seat starts with 100 chips. Between hands every seated player says
READY or LEAVE; a hand needs at least two ready players, and when only one is
ready the server sends HALT and stops. The dealer button moves to the next
ready seat each hand, and betting starts with the seat after it. There are
four betting rounds: preflop, flop, turn and river. If all but one player
fold, the remaining player takes the pot. Otherwise the best five-card hand
from each player's two cards and the five community cards wins the whole pot;
on equal hands the lowest-numbered seat wins. Players with no chips left are
removed from the table.

## As a library

- `holdem.cards`: card codes and names. `card_id("As")` parses a card (raising
  `ValueError` on bad input), `card_name` and `fancy_card_name` print one,
  `make_card`, `rank_of` and `suit_of` build and split codes; `Rank` and
  `Suit` are the enums.
- `holdem.game`: the table. `init_game_state(stack, seed)` returns a
  `GameState` with `reset`, `ready`, `deal`, `deal_community`,
  `find_next_player`, `clear_bets`, `evaluate_hand` and `find_winner`;
  `calculate_5card_value` scores five sorted cards.
- `holdem.rng.CRandom`: the deterministic generator used for shuffling.
- `holdem.protocol`: `ClientPacket` and `ServerPacket` (with `InfoPacket` and
  `EndPacket`) and their `pack`/`unpack` byte encoding; bad data raises
  `ProtocolError`.
- `holdem.actions`: `handle_client_action` applies a request to a
  `GameState` and returns ACK or NACK; `build_info_packet` and
  `build_end_packet` build the outgoing packets.
- `holdem.server.PokerServer`: runs hands over any six connection objects
  with `recv`, `sendall` and `close`.
- `holdem.client.PokerClient`: a seat's connection, with `connect`, `ready`,
  `check`, `call`, `bet_raise`, `fold`, `leave`, `recv_packet` and the
  `on_info`, `on_end` and `on_halt` callbacks; failures raise `ClientError`.

## What it does not do

There are no side pots or split pots: the single winner takes everything, even
from players who went all in for less. The server and clients run on one
machine only, with fixed ports, and the server plays only when all six seats
are filled.