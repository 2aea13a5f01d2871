"""Batch runner — orchestrates load → evaluate → artifact generation."""

from __future__ import annotations

import json
import logging
import shutil
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping, Optional

import pandas as pd
import yaml

from pressure_engine.catalogs.registry import build_engine
from pressure_engine.engine.core import ROW_COLUMNS, Decision, PressureEngine
from pressure_engine.reporting.plots import plot_pressure_breakdown, plot_score_distribution
from pressure_engine.snapshot.validation import MissingFieldError

log = logging.getLogger(__name__)

# Repo root (two levels up from pressure_engine/engine/runner.py)
_REPO_ROOT = Path(__file__).resolve().parent.parent.parent


def _resolve(path: str | Path) -> Path:
    path = Path(path)
    return path if path.is_absolute() else _REPO_ROOT / path


def load_records(path: str | Path) -> list[dict]:
    """Read raw snapshot payloads from CSV, JSON (list) or JSON Lines."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path)
        return df.to_dict(orient="records")
    if suffix == ".jsonl":
        with open(path, "r", encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
    if suffix == ".json":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, Mapping):
            data = data.get("snapshots", [data])
        return list(data)
    raise ValueError(f"Unsupported input format '{suffix}' (expected .csv, .json or .jsonl)")


def _evaluate_one(engine: PressureEngine, raw: Mapping) -> Optional[Decision]:
    try:
        return engine.evaluate_raw(raw)
    except MissingFieldError as exc:
        log.warning("Rejected row: %s", exc)
        return None
    except ValueError as exc:
        log.warning("Rejected row %s: invalid input (%s)", raw.get("subject_id"), exc)
        return None


def evaluate_batch(
    engine: PressureEngine, records: Iterable[Mapping], workers: int = 1,
) -> tuple[list[Decision], int]:
    """Evaluate every record; returns ``(decisions, rejected_count)``.

    Output order always follows input order, whatever ``workers`` is.
    """
    records = list(records)
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda raw: _evaluate_one(engine, raw), records))
    else:
        results = [_evaluate_one(engine, raw) for raw in records]
    decisions = [d for d in results if d is not None]
    return decisions, len(results) - len(decisions)


def decisions_frame(decisions: list[Decision]) -> pd.DataFrame:
    return pd.DataFrame([d.to_row() for d in decisions], columns=list(ROW_COLUMNS))


def summarize_batch(
    decisions: list[Decision], rejected: int, n_input: int,
) -> dict:
    classifications = Counter(d.classification for d in decisions)
    recommendations = Counter(d.recommendation for d in decisions)
    degraded = Counter(
        o.name
        for d in decisions
        for o in (*d.confirming_outcomes, *d.contradicting_outcomes)
        if o.degraded
    )
    confidences = [d.confidence for d in decisions]
    return {
        "n_input": n_input,
        "n_decisions": len(decisions),
        "rejected": rejected,
        "classifications": dict(sorted(classifications.items())),
        "recommendations": dict(sorted(recommendations.items())),
        "mean_confidence": float(sum(confidences) / len(confidences)) if confidences else 0.0,
        "n_out_of_range": sum(1 for d in decisions if d.out_of_range),
        "degraded_signals": dict(sorted(degraded.items())),
    }


def run_batch(config_path: str, run_id: Optional[str] = None) -> str:
    """Evaluate a batch of snapshots and write all run artifacts.

    Parameters
    ----------
    config_path : str
        Path to a YAML config file (relative to repo root or absolute).
    run_id : str, optional
        Override the timestamp-based run id.

    Returns
    -------
    str
        The ``run_id`` (name of the run directory under ``output_dir``).
    """
    cfg_path = _resolve(config_path)
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)

    for key in ("engine", "input", "output_dir"):
        if key not in cfg:
            raise ValueError(f"Batch config missing '{key}'")

    engine_cfg = dict(cfg["engine"])
    if engine_cfg.get("catalog"):
        engine_cfg["catalog"] = str(_resolve(engine_cfg["catalog"]))
    engine = build_engine(engine_cfg)
    input_path = _resolve(cfg["input"])
    output_dir = _resolve(cfg["output_dir"])
    workers = int(cfg.get("workers", 1))

    # ── Generate run_id ──────────────────────────────────────────────
    run_id = run_id or datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    run_dir = output_dir / run_id
    run_dir.mkdir(parents=True, exist_ok=True)
    (run_dir / "plots").mkdir(exist_ok=True)

    log.info("Run ID   : %s", run_id)
    log.info("Engine   : %s", engine.strategy_version)
    log.info("Output   : %s", run_dir)

    # ── Load + evaluate ──────────────────────────────────────────────
    records = load_records(input_path)
    log.info("Loaded %s  (%s rows)", input_path.name, f"{len(records):,}")

    decisions, rejected = evaluate_batch(engine, records, workers=workers)
    if rejected:
        log.warning("%d of %d rows rejected", rejected, len(records))
    log.info("Evaluated %s decisions", f"{len(decisions):,}")

    # ── Write artifacts ──────────────────────────────────────────────
    shutil.copy2(cfg_path, run_dir / "config.yaml")

    frame = decisions_frame(decisions)
    frame.to_csv(run_dir / "decisions.csv", index=False)
    log.info("Wrote decisions.csv  (%s rows)", f"{len(frame):,}")

    (run_dir / "decisions.json").write_text(
        json.dumps([d.to_dict() for d in decisions], indent=2), encoding="utf-8",
    )
    log.info("Wrote decisions.json")

    summary = {
        "run_id": run_id,
        "engine": engine.name,
        "strategy_version": engine.strategy_version,
        "input": str(cfg["input"]),
        "workers": workers,
        **summarize_batch(decisions, rejected, len(records)),
    }
    (run_dir / "summary.json").write_text(
        json.dumps(summary, indent=2), encoding="utf-8",
    )
    log.info("Wrote summary.json")

    plot_score_distribution(frame, run_dir / "plots" / "score_distribution.png")
    plot_pressure_breakdown(frame, run_dir / "plots" / "pressure_breakdown.png")

    log.info("✓ Run complete: %s", run_dir)
    return run_id
