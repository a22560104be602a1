"""
Run the Lord's paradox simulation.

Stage 1 draws one large illustrative dataset per scenario, writes it as CSV
and draws its Lord plot. Stage 2 runs the Monte-Carlo study and writes the
summary table of 2.5th, 50th and 97.5th centiles per model.

Usage:
    lords-paradox [--scenarios s1 s2] [--n-per-replicate N] [--n-replicates R]
                  [--seed S] [--plot-n N] [--output-dir DIR] [--no-plots]
                  [--workers W] [--progress] [--verbose]
"""

import argparse
import logging
import time
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from pydantic import ValidationError

from .config import Scenario, SimulationSettings
from .dgp.sampler import DatasetSampler
from .estimators.battery import EstimatorBattery
from .exceptions import LordsParadoxError
from .exports import write_dataset, write_results
from .ground_truth import GroundTruthEffect, compute_ground_truth
from .plotting import plot_lords_paradox
from .simulation import ResultSummarizer, SimulationDriver
from .utils.logging_config import configure_logging
from .validation import validate_summary

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lords-paradox",
        description="Simulate Lord's paradox and compare estimators of the sex effect on weight",
    )
    parser.add_argument(
        "--scenarios",
        nargs="+",
        type=Scenario.parse,
        default=list(Scenario),
        help="Scenarios to run (scenario1/s1, scenario2/s2)",
    )
    parser.add_argument("--n-per-replicate", type=int, default=1000, help="Units per simulated dataset")
    parser.add_argument("--n-replicates", type=int, default=100, help="Number of replicates")
    parser.add_argument("--seed", type=int, default=1, help="Random seed")
    parser.add_argument("--plot-n", type=int, default=10000, help="Size of the illustrative datasets")
    parser.add_argument("--output-dir", type=str, default=".", help="Directory for CSV and PNG outputs")
    parser.add_argument("--no-plots", action="store_true", help="Skip the Lord plots")
    parser.add_argument("--workers", type=int, default=None, help="Run replicates in this many processes")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def settings_from_args(args: argparse.Namespace) -> SimulationSettings:
    return SimulationSettings(
        scenarios=args.scenarios,
        n_per_replicate=args.n_per_replicate,
        n_replicates=args.n_replicates,
        seed=args.seed,
        plot_sample_size=args.plot_n,
        make_plots=not args.no_plots,
        output_dir=args.output_dir,
        use_process_pool=args.workers is not None and args.workers > 1,
        max_workers=args.workers,
        show_progress=args.progress,
    )


def run_illustration(settings: SimulationSettings, sampler: DatasetSampler, rng: np.random.Generator) -> None:
    """Stage 1: one illustrative dataset (and plot) per scenario.

    Every scenario is calibrated before the first dataset is drawn, so an
    infeasible scenario fails without writing any output.
    """
    logger.info("=" * 60)
    logger.info("ILLUSTRATIVE DATASETS")
    logger.info("=" * 60)
    # Calibrate every scenario before any sampling
    for scenario in settings.scenarios:
        sampler.model(scenario)

    for scenario in settings.scenarios:
        dataset = sampler.sample(scenario, settings.plot_sample_size, rng)
        write_dataset(dataset, settings.dataset_path(scenario))
        if settings.make_plots:
            plot_lords_paradox(dataset, settings.plot_path(scenario))


def run_simulation(
    settings: SimulationSettings,
    sampler: DatasetSampler,
    rng: np.random.Generator,
) -> pd.DataFrame:
    """Stage 2: Monte-Carlo study and summary table."""
    logger.info("=" * 60)
    logger.info("SIMULATION")
    logger.info("=" * 60)
    driver = SimulationDriver(
        sampler=sampler,
        battery=EstimatorBattery(scenario_configs=sampler.scenario_configs),
        use_process_pool=settings.use_process_pool,
        max_workers=settings.max_workers,
        show_progress=settings.show_progress,
    )
    matrices = driver.run(settings.scenarios, settings.n_per_replicate, settings.n_replicates, rng)

    summarizer = ResultSummarizer(decimals=settings.decimals, min_valid=settings.min_valid)
    summary = summarizer.summarize_all(matrices)

    is_valid, errors = validate_summary(summary)
    if not is_valid:
        logger.warning(f"Summary table failed validation: {errors}")

    write_results(summary, settings.results_path)
    return summary


def report(summary: pd.DataFrame, scenarios: List[Scenario], sampler: DatasetSampler) -> None:
    """Log each simulated median next to its population value."""
    truths: Dict[str, GroundTruthEffect] = {}
    for scenario in scenarios:
        for effect in compute_ground_truth(scenario, sampler=sampler).values():
            truths[effect.model_id] = effect

    logger.info("")
    logger.info(f"{'model':<10}{'lower':>10}{'median':>10}{'upper':>10}{'truth':>10}")
    for row in summary.itertuples(index=False):
        truth = truths.get(row.model)
        truth_text = f"{truth.value:>10.2f}" if truth else f"{'-':>10}"
        logger.info(f"{row.model:<10}{row.lower:>10.2f}{row.median:>10.2f}{row.upper:>10.2f}{truth_text}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level="DEBUG" if args.verbose else None)

    try:
        settings = settings_from_args(args)
    except ValidationError as e:
        logger.error(f"Invalid settings: {e}")
        return 2

    logger.info(f"Scenarios: {[s.value for s in settings.scenarios]}")
    logger.info(f"Seed: {settings.seed}")

    start_time = time.time()
    rng = np.random.default_rng(settings.seed)
    sampler = DatasetSampler()

    try:
        run_illustration(settings, sampler, rng)
        summary = run_simulation(settings, sampler, rng)
        report(summary, settings.scenarios, sampler)
    except LordsParadoxError as e:
        logger.error(f"Simulation failed: {e.message}", extra={"error": e.to_dict()})
        return 1

    logger.info(f"Done in {time.time() - start_time:.1f}s; results in {settings.results_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
