#!/usr/bin/env python3
"""Simulate a loan-against-mutual-funds portfolio.

Registers synthetic products, folios and borrowers, runs applications
through review and disbursal, then replays months of EMI collections,
NAV moves and overdue sweeps. Lifecycle events go to the configured
sink (console, JSON Lines or Kafka).
"""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lamf_core.config import EVENT_SINK_TYPES, EventConfig, LamfConfig
from lamf_core.logging import get_logger, setup_logging
from lamf_core.scenarios import PortfolioScenario
from lamf_core.sinks import create_sink

logger = get_logger(__name__)


def main() -> None:
    """Main entry point."""
    config = LamfConfig.from_env()

    parser = argparse.ArgumentParser(description="Simulate a loan-against-mutual-funds portfolio")
    parser.add_argument(
        "--applicants",
        type=int,
        default=100,
        help="Number of borrowers to generate (default: 100)",
    )
    parser.add_argument(
        "--disbursal-rate",
        type=float,
        default=0.6,
        help="Share of applications taken to disbursal (default: 0.6)",
    )
    parser.add_argument(
        "--months",
        type=int,
        default=6,
        help="Months of repayment history to simulate (default: 6)",
    )
    parser.add_argument(
        "--on-time-rate",
        type=float,
        default=0.9,
        help="Probability a due EMI is paid in its month (default: 0.9)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--sink",
        choices=EVENT_SINK_TYPES,
        default=config.events.sink,
        help="Where lifecycle events go (default: LAMF_EVENT_SINK or none)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=config.events.output_dir,
        help="Directory for the jsonl sink",
    )
    parser.add_argument(
        "--kafka-bootstrap",
        type=str,
        default=config.kafka.bootstrap_servers,
        help="Kafka bootstrap servers",
    )
    parser.add_argument("--log-level", default=config.log_level, help="Log level")
    parser.add_argument(
        "--log-format",
        choices=["standard", "json"],
        default=config.log_format,
        help="Log output format",
    )
    args = parser.parse_args()

    setup_logging(args.log_level, args.log_format)

    config.events = EventConfig(
        sink=args.sink,
        topic_prefix=config.events.topic_prefix,
        output_dir=args.output_dir,
    )
    config.kafka.bootstrap_servers = args.kafka_bootstrap
    sink = create_sink(config)

    scenario = PortfolioScenario(
        num_applicants=args.applicants,
        disbursal_rate=args.disbursal_rate,
        months_elapsed=args.months,
        on_time_rate=args.on_time_rate,
        seed=args.seed,
        config=config,
        sink=sink,
    )

    try:
        scenario.generate()
    finally:
        if sink is not None:
            sink.close()

    summary = scenario.summary()
    summary["events_failed"] = scenario.engine.events.stats.failed
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
