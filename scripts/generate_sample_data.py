#!/usr/bin/env python3
"""Generate a sample portfolio, reconcile it and export the ledger.

Writes the raw backend sheets plus the derived contracts, mutations,
submissions, customers and tickets as JSON files for manual validation.
"""

import argparse
import json
import sys
from datetime import date
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from koperasi_ledger.allocation import customer_overview, target_percentage
from koperasi_ledger.config import LedgerConfig, OutputConfig, SyncConfig
from koperasi_ledger.generators import InMemoryBackend, SheetGenerator
from koperasi_ledger.logging import get_logger, setup_logging
from koperasi_ledger.models import Role
from koperasi_ledger.refresh import LedgerRefresher
from koperasi_ledger.sinks import ConsoleSink, JsonFileSink, export_snapshot
from koperasi_ledger.sinks.serialization import serialize_value

logger = get_logger("scripts.generate_sample_data")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate and reconcile a sample cooperative ledger")
    parser.add_argument("--customers", type=int, default=20, help="Number of borrowers")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: SEED env or 42)")
    parser.add_argument("--role", default=None, help="ADMIN or KOLEKTOR (default: LEDGER_ROLE env)")
    parser.add_argument("--output", type=Path, default=None, help="Output directory")
    parser.add_argument("--console", action="store_true", help="Print to stdout instead of writing files")
    return parser.parse_args()


def save_sheets(sheets: dict, output_dir: Path) -> None:
    """Save the raw backend sheets next to the derived files."""
    filepath = output_dir / "backend_sheets.json"
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(serialize_value(sheets), f, indent=2, ensure_ascii=False, default=str)
    logger.info("Saved raw sheets to %s", filepath)


def main() -> None:
    """Generate, refresh and export one sample ledger."""
    args = parse_args()
    env = LedgerConfig.from_env()
    setup_logging(env.log_level)

    config = LedgerConfig(
        sync=SyncConfig(
            role=args.role or env.sync.role,
            user_id=env.sync.user_id,
            refresh_interval_seconds=env.sync.refresh_interval_seconds,
            admin_fetch_for_collectors=env.sync.admin_fetch_for_collectors,
        ),
        synthesis=env.synthesis,
        output=OutputConfig(
            json_output_dir=args.output or env.output.json_output_dir,
            pretty_json=env.output.pretty_json,
        ),
        seed=args.seed if args.seed is not None else (env.seed if env.seed is not None else 42),
        log_level=env.log_level,
    )

    today = date.today()
    generator = SheetGenerator(seed=config.seed)
    sheets = generator.generate_sheets(args.customers, today)
    backend = InMemoryBackend(sheets)

    refresher = LedgerRefresher(backend, config)
    snapshot = refresher.refresh(today)

    if args.console:
        sink = ConsoleSink(max_records=5)
    else:
        sink = JsonFileSink(config.output.json_output_dir, pretty=config.output.pretty_json)
        save_sheets(sheets, config.output.json_output_dir)

    export_snapshot(sink, snapshot, today)
    sink.write_batch("customer_overview", customer_overview(snapshot.customers.values(), snapshot.contracts.values(), today))
    sink.close()

    target = snapshot.daily_target(today)
    collected = snapshot.collected_today(today)
    logger.info(
        "Role %s | queue %d | target %.0f | collected %.0f (%d%%)",
        Role.parse(config.sync.role).value,
        len(snapshot.collection_queue(today)),
        target,
        collected,
        target_percentage(collected, target),
    )


if __name__ == "__main__":
    main()
