"""
Performance Benchmark
=====================

Measures placement throughput of the raw engine and the Gymnasium env
under random legal play.

Usage:
    python -m tools.benchmark_speed [--steps S] [--mode classic|level|daily]
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import Optional

import numpy as np

from wagara_blast.wagara_core.config_loader import load_config
from wagara_blast.wagara_core.daily import generate_daily_challenge
from wagara_blast.wagara_core.env_gym import WagaraEnv
from wagara_blast.wagara_core.game import GameEngine
from wagara_blast.wagara_core.game_state import GameMode, GameState
from wagara_blast.wagara_core.levels import LevelConfig, load_level


def _level_for(mode: GameMode, level_id: int) -> Optional[LevelConfig]:
    if mode == GameMode.LEVEL:
        return load_level(level_id)
    if mode == GameMode.DAILY:
        return generate_daily_challenge()
    return None


def _random_move(engine: GameEngine, state: GameState, rng: np.random.Generator):
    """Pick a uniformly random legal (slot, position), or None if stuck."""
    moves = [
        (slot, pos)
        for slot, positions in engine.get_available_placements(state).items()
        for pos in positions
    ]
    if not moves:
        return None
    return moves[int(rng.integers(len(moves)))]


def benchmark_engine(
    num_steps: int = 1000,
    mode: GameMode = GameMode.CLASSIC,
    level_id: int = 1,
    seed: int = 42
) -> dict:
    """
    Benchmark GameEngine without Gym overhead.

    Args:
        num_steps: Number of placements.
        mode: Game mode for each session.
        level_id: Level used in level mode.
        seed: Random seed.

    Returns:
        Dict with timing results.
    """
    config = load_config()
    engine = GameEngine(config=config, seed=seed)
    rng = np.random.default_rng(seed)
    level = _level_for(mode, level_id)

    state = engine.init_game(mode, level)
    games = 1
    start = time.perf_counter()

    for _ in range(num_steps):
        move = _random_move(engine, state, rng)
        if move is None or state.is_terminal:
            state = engine.init_game(mode, level)
            games += 1
            continue
        state = engine.place_piece(state, move[0], move[1]).state

    elapsed = time.perf_counter() - start

    return {
        "mode": f"engine/{mode.value}",
        "num_steps": num_steps,
        "games": games,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_steps / elapsed,
        "ms_per_step": (elapsed * 1000) / num_steps
    }


def benchmark_env(
    num_steps: int = 1000,
    mode: GameMode = GameMode.CLASSIC,
    level_id: int = 1,
    seed: int = 42
) -> dict:
    """
    Benchmark WagaraEnv with masked random actions.

    Args:
        num_steps: Number of env steps.
        mode: Game mode passed to the env.
        level_id: Level used in level mode.
        seed: Random seed.

    Returns:
        Dict with timing results.
    """
    env = WagaraEnv(mode=mode, level_id=level_id)
    rng = np.random.default_rng(seed)

    _, info = env.reset(seed=seed)
    games = 1
    start = time.perf_counter()

    for _ in range(num_steps):
        legal = np.argwhere(info["action_mask"])
        if len(legal) == 0:
            _, info = env.reset()
            games += 1
            continue
        action = legal[int(rng.integers(len(legal)))]
        _, _, terminated, truncated, info = env.step(action)
        if terminated or truncated:
            _, info = env.reset()
            games += 1

    elapsed = time.perf_counter() - start
    env.close()

    return {
        "mode": f"env/{mode.value}",
        "num_steps": num_steps,
        "games": games,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_steps / elapsed,
        "ms_per_step": (elapsed * 1000) / num_steps
    }


def run_all_benchmarks(steps: int = 500, mode: GameMode = GameMode.CLASSIC, level_id: int = 1) -> list:
    """Run both benchmarks and print a summary table."""
    results = []

    print("=" * 60)
    print("WAGARA BLAST PERFORMANCE BENCHMARK")
    print("=" * 60)
    print()

    print("Benchmarking GameEngine (raw)...")
    result = benchmark_engine(num_steps=steps, mode=mode, level_id=level_id)
    results.append(result)
    print(f"  Steps/sec: {result['steps_per_second']:.1f}")
    print(f"  ms/step:   {result['ms_per_step']:.3f}")
    print()

    print("Benchmarking WagaraEnv...")
    result = benchmark_env(num_steps=steps, mode=mode, level_id=level_id)
    results.append(result)
    print(f"  Steps/sec: {result['steps_per_second']:.1f}")
    print(f"  ms/step:   {result['ms_per_step']:.3f}")
    print()

    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print()
    print(f"{'Mode':<20} {'Games':>6} {'Steps/s':>12} {'ms/step':>10}")
    print("-" * 50)

    for r in results:
        print(f"{r['mode']:<20} {r['games']:>6} {r['steps_per_second']:>12.1f} {r['ms_per_step']:>10.3f}")

    return results


def main():
    parser = argparse.ArgumentParser(description="Benchmark Wagara Blast engine performance")
    parser.add_argument("--steps", type=int, default=500, help="Steps per benchmark")
    parser.add_argument("--mode", choices=[m.value for m in GameMode], default="classic",
                        help="Game mode to play")
    parser.add_argument("--level", type=int, default=1, help="Level id for level mode")
    parser.add_argument("--quick", action="store_true", help="Quick benchmark (fewer steps)")

    args = parser.parse_args()

    steps = 100 if args.quick else args.steps

    run_all_benchmarks(steps=steps, mode=GameMode(args.mode), level_id=args.level)

    return 0


if __name__ == "__main__":
    sys.exit(main())
