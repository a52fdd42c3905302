"""Command-line driver: play against the hunt/target AI or benchmark it."""

from __future__ import annotations

import argparse
import string
from typing import Sequence

from seabattle.engine.board import CellState
from seabattle.engine.config import GameConfig
from seabattle.engine.game import BoardSnapshot, GamePhase, GameState, Player
from seabattle.engine.instrumented_game import InstrumentedGame
from seabattle.engine.ship import Coordinate
from seabattle.sim import simulate_ai_games
from seabattle.telemetry import init_telemetry

ROW_LABELS = string.ascii_uppercase

SYMBOLS = {
    CellState.EMPTY: ".",
    CellState.SHIP: "S",
    CellState.HIT: "X",
    CellState.MISS: "o",
    CellState.SUNK: "#",
}


def parse_coordinate(text: str, grid_size: int) -> Coordinate:
    """Parse ``A5`` (row letter, 1-based column) or ``x y`` (0-based) into a Coordinate."""
    cleaned = text.strip().upper()
    if not cleaned:
        raise ValueError("Empty coordinate.")
    if cleaned[0].isalpha():
        y = ROW_LABELS.find(cleaned[0])
        if y < 0 or y >= grid_size:
            raise ValueError(f"Row must be between A and {ROW_LABELS[grid_size - 1]}.")
        try:
            x = int(cleaned[1:]) - 1
        except ValueError as exc:
            raise ValueError(f"Column must be a number between 1 and {grid_size}.") from exc
    else:
        parts = cleaned.replace(",", " ").split()
        if len(parts) != 2:
            raise ValueError("Use formats like A5 or '4 0'.")
        try:
            x, y = map(int, parts)
        except ValueError as exc:
            raise ValueError("Coordinates must be whole numbers.") from exc
    if not (0 <= x < grid_size and 0 <= y < grid_size):
        raise ValueError(f"Coordinates must be within the {grid_size}x{grid_size} board.")
    return Coordinate(x, y)


def format_board(board: BoardSnapshot, reveal_ships: bool) -> str:
    header = "    " + " ".join(f"{x + 1:>2}" for x in range(board.grid_size))
    rows = [header]
    for y in range(board.grid_size):
        symbols = []
        for x in range(board.grid_size):
            state = board.cell(x, y)
            if state is CellState.SHIP and not reveal_ships:
                state = CellState.EMPTY
            symbols.append(f"{SYMBOLS[state]:>2}")
        rows.append(f"{ROW_LABELS[y]} |" + " ".join(symbols))
    return "\n".join(rows)


class TextRenderer:
    """Observer printing status lines and keeping the latest snapshot for redraws."""

    def __init__(self) -> None:
        self.state: GameState | None = None
        self.statuses: list[str] = []

    def on_status(self, text: str) -> None:
        self.statuses.append(text)
        print(f">> {text}")

    def on_state_change(self, state: GameState) -> None:
        self.state = state

    def draw(self) -> None:
        if self.state is None:
            return
        print("\nYour Board:")
        print(format_board(self.state.player_board, reveal_ships=True))
        if self.state.phase is not GamePhase.SETUP:
            print("\nEnemy Waters:")
            print(format_board(self.state.cpu_board, reveal_ships=self.state.phase is GamePhase.FINISHED))


def _run_setup(game: InstrumentedGame, renderer: TextRenderer) -> None:
    grid_size = game.config.grid_size
    while not game.is_setup_complete():
        renderer.draw()
        raw = input("Anchor (e.g. A1), 'r' to rotate, 'auto' to place the rest, 'q' to quit: ").strip()
        command = raw.lower()
        if command == "q":
            raise SystemExit("Goodbye!")
        if command == "r":
            game.toggle_orientation()
            continue
        if command == "auto":
            outcome = game.auto_place_player_ships()
            if not outcome.ok:
                print(outcome.message)
            continue
        try:
            coord = parse_coordinate(raw, grid_size)
        except ValueError as exc:
            print(f"Invalid input: {exc}")
            continue
        outcome = game.try_place_player_ship(coord.x, coord.y)
        if not outcome.ok:
            print(outcome.message)


def _run_battle(game: InstrumentedGame, renderer: TextRenderer) -> None:
    grid_size = game.config.grid_size
    while game.phase is GamePhase.PLAY:
        renderer.draw()
        raw = input("Target (e.g. A5) or 'q' to quit: ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            coord = parse_coordinate(raw, grid_size)
        except ValueError as exc:
            print(f"Invalid input: {exc}")
            continue
        outcome = game.player_attack(coord.x, coord.y)
        if not outcome.ok:
            print(outcome.message)


def _prompt_play_again() -> bool:
    while True:
        raw = input("Play again? [y/N]: ").strip().lower()
        if raw in {"", "n", "no"}:
            return False
        if raw in {"y", "yes"}:
            return True
        print("Please answer with 'y' or 'n'.")


def _announce_winner(winner: Player | None) -> None:
    if winner is Player.HUMAN:
        print("\nCongratulations, you won!")
    else:
        print("\nThe CPU won this time. Better luck next battle!")


def play_game(seed: int | None = None, auto_place: bool = False) -> list[Player | None]:
    """Play matches until the user declines a rematch; return each match's winner."""
    config = GameConfig.from_env()
    if config.grid_size > len(ROW_LABELS):
        raise SystemExit(f"The terminal board supports at most {len(ROW_LABELS)} rows.")
    print("Welcome to SeaBattle!\n")
    renderer = TextRenderer()
    game = InstrumentedGame(
        config=config,
        rng_seed=seed,
        on_state_change=renderer.on_state_change,
        on_status=renderer.on_status,
    )

    winners: list[Player | None] = []
    while True:
        if auto_place:
            game.auto_place_player_ships()
        _run_setup(game, renderer)
        game.start_game()
        _run_battle(game, renderer)

        renderer.draw()
        _announce_winner(game.winner)
        winners.append(game.winner)
        if not _prompt_play_again():
            return winners
        game.reset()


def run_simulation(games: int, seed: int) -> None:
    report = simulate_ai_games(games, seed=seed, config=GameConfig.from_env())
    print(f"Simulated {report.games} games (seed={report.seed}) in {report.elapsed_s:.2f}s")
    print(f"  shots to win: min={report.min_shots} max={report.max_shots}")
    print(
        f"  mean={report.mean_shots:.1f} median={report.median_shots:.1f} p90={report.p90_shots:.1f}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="seabattle", description="Play SeaBattle via the CLI.")
    subparsers = parser.add_subparsers(dest="command")

    play = subparsers.add_parser("play", help="Play against the CPU (default).")
    play.add_argument("--seed", type=int, default=None, help="Optional RNG seed for reproducibility.")
    play.add_argument("--auto-place", action="store_true", help="Place your fleet randomly.")

    simulate = subparsers.add_parser("simulate", help="Measure the AI's shots-to-win.")
    simulate.add_argument("--games", type=int, default=200, help="Number of games to simulate.")
    simulate.add_argument("--seed", type=int, default=0, help="Base RNG seed.")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    init_telemetry()
    if args.command == "simulate":
        run_simulation(args.games, args.seed)
    else:
        play_game(seed=getattr(args, "seed", None), auto_place=getattr(args, "auto_place", False))


if __name__ == "__main__":
    main()
