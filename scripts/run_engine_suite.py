"""Suite runner: runs every bundled batch config and prints a comparison table."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pandas as pd

# Ensure repo root is importable
_REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_REPO_ROOT))

from pressure_engine.engine.runner import run_batch

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)

SUITE_CONFIGS = [
    "configs/god_mode_batch.yaml",
    "configs/god_mode_conservative.yaml",
    "configs/median_lock_batch.yaml",
    "configs/fatigue_batch.yaml",
    "configs/matchup_batch.yaml",
]

SUMMARY_COLS = [
    "config",
    "run_id",
    "strategy_version",
    "n_input",
    "n_decisions",
    "rejected",
    "confirm",
    "contradict",
    "caution",
    "mean_confidence",
    "n_out_of_range",
]


def main() -> None:
    runs_dir = _REPO_ROOT / "runs"
    rows: list[dict] = []

    for config_path in SUITE_CONFIGS:
        config_name = Path(config_path).stem
        log.info("=" * 60)
        log.info("Running batch: %s", config_name)
        log.info("=" * 60)

        # Configs sharing a second would share a timestamp run id.
        run_id = f"{pd.Timestamp.now(tz='UTC'):%Y%m%d_%H%M%S}_{config_name}"
        try:
            run_batch(config_path, run_id=run_id)
        except Exception:
            log.exception("Batch %s FAILED", config_name)
            continue

        summary_path = runs_dir / run_id / "summary.json"
        with open(summary_path, "r", encoding="utf-8") as f:
            summary = json.load(f)

        counts = summary["classifications"]
        rows.append({
            "config": config_name,
            "run_id": run_id,
            "strategy_version": summary["strategy_version"],
            "n_input": summary["n_input"],
            "n_decisions": summary["n_decisions"],
            "rejected": summary["rejected"],
            "confirm": counts.get("confirm", 0),
            "contradict": counts.get("contradict", 0),
            "caution": counts.get("caution", 0),
            "mean_confidence": summary["mean_confidence"],
            "n_out_of_range": summary["n_out_of_range"],
        })

    if not rows:
        log.error("No batches completed successfully.")
        sys.exit(1)

    table = pd.DataFrame(rows, columns=SUMMARY_COLS)

    print("\n" + "=" * 80)
    print("ENGINE SUITE COMPARISON")
    print("=" * 80)
    print(table.to_string(index=False))
    print("=" * 80 + "\n")

    out_path = runs_dir / "suite_summary.csv"
    table.to_csv(out_path, index=False)
    log.info("Summary saved to %s", out_path)


if __name__ == "__main__":
    main()
