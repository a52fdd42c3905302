"""Headless harness measuring how many shots the hunt/target AI needs per fleet."""

from __future__ import annotations

import hashlib
import logging
import random
import time
from dataclasses import asdict, dataclass

import numpy as np

from seabattle.engine.ai import HuntTargetAI
from seabattle.engine.board import AttackResult, Board
from seabattle.engine.config import GameConfig
from seabattle.telemetry import get_tracer, record_game_metric

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.sim")


@dataclass(frozen=True)
class SimulationReport:
    """Shots-to-win statistics over a batch of simulated games."""

    games: int
    seed: int
    min_shots: int
    max_shots: int
    mean_shots: float
    median_shots: float
    p90_shots: float
    elapsed_s: float

    def to_dict(self) -> dict[str, float | int]:
        return asdict(self)


def game_seed(base_seed: int, game_index: int) -> int:
    """Derive a stable per-game seed so batches are reproducible."""
    payload = f"{int(base_seed)}|{int(game_index)}".encode("utf-8")
    digest = hashlib.blake2b(payload, digest_size=8).digest()
    return int.from_bytes(digest, "little") & 0x7FFFFFFF


def play_ai_game(config: GameConfig, rng: random.Random) -> int:
    """Let the AI fire at a random fleet until it is destroyed; return the shot count."""
    board = Board(config.grid_size, owner="target")
    board.randomize_ships(config.fleet, rng)
    ai = HuntTargetAI(config.grid_size, rng=rng)

    shots = 0
    while not board.all_ships_sunk():
        attack = ai.get_attack()
        result = board.receive_attack(attack.x, attack.y)
        if result is AttackResult.INVALID:
            raise RuntimeError(f"AI repeated an attack at ({attack.x},{attack.y}).")
        ai.record_attack_result(attack.x, attack.y, result)
        shots += 1
    return shots


def simulate_ai_games(games: int, seed: int = 0, config: GameConfig | None = None) -> SimulationReport:
    """Play ``games`` independent AI games and summarise the shot counts."""
    if games < 1:
        raise ValueError("games must be at least 1")
    config = config or GameConfig()

    with tracer.start_as_current_span("sim.simulate_ai_games") as span:
        span.set_attribute("games", games)
        span.set_attribute("seed", seed)
        start = time.perf_counter()
        shots = np.array(
            [play_ai_game(config, random.Random(game_seed(seed, index))) for index in range(games)],
            dtype=np.int64,
        )
        elapsed = time.perf_counter() - start

        report = SimulationReport(
            games=games,
            seed=seed,
            min_shots=int(shots.min()),
            max_shots=int(shots.max()),
            mean_shots=float(shots.mean()),
            median_shots=float(np.median(shots)),
            p90_shots=float(np.percentile(shots, 90)),
            elapsed_s=elapsed,
        )
        span.set_attribute("mean_shots", report.mean_shots)

    record_game_metric("seabattle_sim_games_total", games, {"grid_size": config.grid_size})
    logger.info("simulation_complete", extra=report.to_dict())
    return report
