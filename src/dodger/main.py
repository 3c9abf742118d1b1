"""
Main entry point for DODGER.

Runs the pygame simulator by default, or a headless autopilot run with
``--headless`` (or ``DODGER_ENV=headless``).
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from dodger.config.settings import Settings, get_settings


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="dodger", description="Dodge the falling obstacles.")
    parser.add_argument("--headless", action="store_true", help="Run the autopilot without a window")
    parser.add_argument("--seconds", type=float, default=60.0, help="Headless run length in simulated seconds")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible run")
    parser.add_argument("--pattern", default=None, help="Force a pattern by name")
    parser.add_argument("--patterns-file", type=Path, default=None, help="JSON pattern catalog to use instead of the built-in one")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser.parse_args(argv)


async def run_simulator(settings: Settings, pattern: Optional[str] = None) -> None:
    """Run the windowed version."""
    import random
    from dodger.game.simulation import Simulation
    from dodger.persistence.store import ScoreStore
    from dodger.simulator.window import SimulatorWindow, WindowConfig

    if pattern:
        settings = settings.model_copy(update={"pattern": pattern})
    simulation = Simulation(settings=settings, rng=random.Random(settings.seed))

    store = ScoreStore(settings.score_store_path)
    store.attach(simulation.event_bus)

    config = WindowConfig(title=settings.title, fps=settings.fps, scale=settings.window_scale)
    window = SimulatorWindow(simulation, config=config, store=store)

    await window.run()


def run_headless_cli(settings: Settings, seconds: float, seed: Optional[int], pattern: Optional[str]) -> int:
    """Run the autopilot once and print the result. Returns the final score."""
    from dodger.autopilot import run_headless

    snapshot = run_headless(settings=settings, seconds=seconds, seed=seed, pattern=pattern)
    outcome = "crashed" if snapshot.phase.name == "GAME_OVER" else "survived"
    print(
        f"{outcome}: score={snapshot.score} level={snapshot.level} "
        f"pattern={snapshot.pattern} ticks={snapshot.tick}"
    )
    return snapshot.score


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    from dotenv import load_dotenv

    # Load environment variables
    load_dotenv()

    args = parse_args(argv)
    settings = get_settings()
    if args.patterns_file is not None:
        settings = settings.model_copy(update={"patterns_file": args.patterns_file})

    setup_logging(args.debug or settings.debug)

    logger = logging.getLogger(__name__)
    logger.info("DODGER starting...")

    try:
        if args.headless or settings.is_headless:
            logger.info("Running headless")
            run_headless_cli(settings, args.seconds, args.seed, args.pattern)
        else:
            logger.info("Running in simulator mode")
            asyncio.run(run_simulator(settings, args.pattern))

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)

    logger.info("DODGER stopped")


if __name__ == "__main__":
    main()
