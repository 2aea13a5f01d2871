"""Unified entry point for the pressure engines."""

import argparse
import json
import logging
import sys

log = logging.getLogger(__name__)

COMMANDS = {
    "evaluate": "Evaluate snapshot(s) from a JSON file and print the decision(s)",
    "batch": "Run a batch config and write run artifacts",
    "catalog": "List an engine's signal catalog",
}


def _configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%H:%M:%S",
    )


def _usage() -> None:
    logging.basicConfig(level=logging.INFO)
    log.error("Usage: python -m pressure_engine <command> [args...]")
    log.error("Available commands:")
    for name, help_text in COMMANDS.items():
        log.error("  %-9s - %s", name, help_text)


def _evaluate(args: list[str]) -> int:
    p = argparse.ArgumentParser(prog="pressure_engine evaluate", description=COMMANDS["evaluate"])
    p.add_argument("--engine", default="god_mode", help="Registered engine type")
    p.add_argument("--input", required=True, help="JSON snapshot file, or '-' for stdin")
    p.add_argument("--sport", help="Sport tag applied to snapshots that have none")
    p.add_argument("-v", "--verbose", action="store_true")
    opts = p.parse_args(args)
    _configure_logging(opts.verbose)

    from pressure_engine.catalogs.registry import build_engine
    from pressure_engine.snapshot.validation import MissingFieldError

    if opts.input == "-":
        payload = json.load(sys.stdin)
    else:
        with open(opts.input, "r", encoding="utf-8") as f:
            payload = json.load(f)

    engine = build_engine({"type": opts.engine})
    snapshots = payload if isinstance(payload, list) else [payload]
    decisions = []
    for raw in snapshots:
        if opts.sport:
            raw.setdefault("sport", opts.sport)
        try:
            decisions.append(engine.evaluate_raw(raw).to_dict())
        except MissingFieldError as exc:
            log.error("Invalid snapshot: %s", exc)
            return 2

    out = decisions if isinstance(payload, list) else decisions[0]
    print(json.dumps(out, indent=2))
    return 0


def _batch(args: list[str]) -> int:
    p = argparse.ArgumentParser(prog="pressure_engine batch", description=COMMANDS["batch"])
    p.add_argument("--config", required=True, help="Path to YAML config file")
    p.add_argument("--run-id", help="Override the timestamp run id")
    p.add_argument("-v", "--verbose", action="store_true")
    opts = p.parse_args(args)
    _configure_logging(opts.verbose)

    from pressure_engine.engine.runner import run_batch

    run_id = run_batch(opts.config, run_id=opts.run_id)
    log.info("Finished: run_id %s", run_id)
    return 0


def _catalog(args: list[str]) -> int:
    p = argparse.ArgumentParser(prog="pressure_engine catalog", description=COMMANDS["catalog"])
    p.add_argument("--engine", default="god_mode", help="Registered engine type")
    opts = p.parse_args(args)
    _configure_logging()

    from pressure_engine.catalogs.registry import build_config_for

    config = build_config_for({"type": opts.engine})
    frame = config.catalog.to_frame()
    print(f"{config.strategy_version}  ({len(frame)} signals)")
    print(frame.drop(columns=["description"]).to_string(index=False))
    return 0


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    if not argv:
        _usage()
        return 1

    command, rest = argv[0], argv[1:]
    if command == "evaluate":
        return _evaluate(rest)
    if command == "batch":
        return _batch(rest)
    if command == "catalog":
        return _catalog(rest)

    logging.basicConfig(level=logging.INFO)
    log.error("Unknown command: %s", command)
    _usage()
    return 1


if __name__ == "__main__":
    sys.exit(main())
