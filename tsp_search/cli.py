import argparse
import queue
import time
from pathlib import Path
from typing import Dict, List

import numpy as np

from tsp_search.data import DISTRIBUTIONS, Point, generate_points, load_points
from tsp_search.distance import build_matrix, nearest_neighbor_tour
from tsp_search.messages import (
    CompleteMessage,
    InitMessage,
    ProgressMessage,
    StopMessage,
    StoppedMessage,
)
from tsp_search.orchestrator import RunWorker, new_run_id, run_search
from tsp_search.results import ResultHistory, build_summary_report, runs_to_csv, runs_to_json
from tsp_search.settings import DEFAULT_STORE_PATH, SettingsStore
from tsp_search.solvers import Algorithm


def log(msg: str) -> None:
    ts = time.strftime("%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)


def _algorithms(choice: str) -> List[Algorithm]:
    if choice == "both":
        return [Algorithm.SA, Algorithm.HSA]
    return [Algorithm(choice)]


def _load_points(args) -> List[Point]:
    if args.input:
        points = load_points(Path(args.input))
        log(f"loaded {len(points)} points from {args.input}")
    else:
        rng = np.random.default_rng(args.seed)
        points = generate_points(args.points, args.distribution, rng=rng)
        log(f"generated {len(points)} {args.distribution} points")
    if not points:
        raise RuntimeError("No points available; pass --input or --points.")
    return points


def _settings_path(args) -> Path:
    return Path(args.settings) if args.settings else DEFAULT_STORE_PATH


def _store(args) -> SettingsStore:
    store = SettingsStore(_settings_path(args))
    if args.preset and not store.apply_preset(args.preset):
        raise RuntimeError(f"Unknown preset {args.preset!r}.")
    if args.iterations is not None:
        store.update_sa(iterations=args.iterations)
        store.update_hsa(iterations=args.iterations)
    return store


def _settings(store: SettingsStore, algorithm: Algorithm):
    return store.sa if algorithm is Algorithm.SA else store.hsa


def _seed_tour(args, points: List[Point]):
    if not args.nearest_neighbor:
        return None
    return nearest_neighbor_tour(build_matrix(points), args.start)


def _describe(message: ProgressMessage) -> str:
    extra = ""
    if message.temperature is not None:
        extra = f" T={message.temperature:.4f}"
    elif message.memory_updates is not None:
        extra = f" updates={message.memory_updates}"
    return (
        f"{message.algorithm.value} {message.iteration}/{message.iterations} "
        f"best={message.best_distance:.4f}{extra} ({message.elapsed_ms:.0f} ms)"
    )


def run(args) -> None:
    points = _load_points(args)
    store = _store(args)
    seed_tour = _seed_tour(args, points)
    inbox: "queue.Queue" = queue.Queue()
    workers: Dict[str, RunWorker] = {}
    history = ResultHistory()

    # Validate every run before any worker thread starts.
    inits = [
        InitMessage(
            run_id=new_run_id(),
            algorithm=algorithm,
            points=points,
            start_index=args.start,
            settings=_settings(store, algorithm),
            seed_tour=seed_tour,
            emit_interval_ms=args.emit_interval,
            seed=None if args.seed is None else args.seed + i,
        )
        for i, algorithm in enumerate(_algorithms(args.algorithm))
    ]

    pending = set()
    last_log = 0.0
    try:
        for init in inits:
            worker = RunWorker(inbox.put, name=f"tsp-{init.algorithm.value.lower()}", logger=log).start()
            workers[init.run_id] = worker
            worker.send(init)
            pending.add(init.run_id)
        log("running; Ctrl+C to stop.")
        while pending:
            message = inbox.get()
            if isinstance(message, CompleteMessage):
                history.add(message.to_result())
                log(f"done: {_describe(message)}")
                pending.discard(message.run_id)
            elif isinstance(message, StoppedMessage):
                pending.discard(message.run_id)
            elif time.perf_counter() - last_log >= args.log_every:
                last_log = time.perf_counter()
                log(_describe(message))
    except KeyboardInterrupt:
        for run_id in pending:
            workers[run_id].send(StopMessage(run_id=run_id))
        log("Interrupted. Runs stopped.")
    finally:
        for worker in workers.values():
            worker.close(timeout=5.0)

    if history.runs():
        print(build_summary_report(len(points), history))
        _export(args, history)


def compare(args) -> None:
    points = _load_points(args)
    store = _store(args)
    seed_tour = _seed_tour(args, points)
    history = ResultHistory()
    for r in range(args.runs):
        for i, algorithm in enumerate(_algorithms(args.algorithm)):
            seed = None if args.seed is None else args.seed + 2 * r + i
            result = run_search(
                points,
                algorithm,
                _settings(store, algorithm),
                start_index=args.start,
                seed_tour=seed_tour,
                seed=seed,
            )
            history.add(result)
            log(f"run {r + 1}/{args.runs} {algorithm.value}: best={result.best_distance:.4f} ({result.runtime_ms:.0f} ms)")
    print(build_summary_report(len(points), history))
    _export(args, history)


def _export(args, history: ResultHistory) -> None:
    runs = history.runs()
    if args.csv:
        Path(args.csv).write_text(runs_to_csv(runs))
        log(f"wrote {args.csv}")
    if args.json:
        Path(args.json).write_text(runs_to_json(runs))
        log(f"wrote {args.json}")


def presets(args) -> None:
    store = SettingsStore(_settings_path(args))
    if args.save:
        preset = store.save_preset(args.save)
        path = store.save()
        log(f"saved preset {preset.name} ({preset.id}) to {path}")
        return
    if not store.presets:
        print("No presets saved.")
    for preset in store.presets:
        print(f"{preset.id}  {preset.name}  {preset.created_at}")


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--algorithm", choices=["SA", "HSA", "both"], default="both")
    parser.add_argument("--input", help="CSV, JSON or TSPLIB (.tsp) point file")
    parser.add_argument("--points", type=int, default=60)
    parser.add_argument("--distribution", choices=DISTRIBUTIONS, default="clustered")
    parser.add_argument("--start", type=int, default=0)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--iterations", type=int, default=None)
    parser.add_argument("--nearest-neighbor", action="store_true", help="Seed runs with a nearest-neighbour tour")
    parser.add_argument("--settings", help="Settings/preset JSON file")
    parser.add_argument("--preset", help="Preset id or name to apply")
    parser.add_argument("--csv", help="Export runs as CSV")
    parser.add_argument("--json", help="Export runs as JSON")


def main(argv=None):
    parser = argparse.ArgumentParser(description="TSP metaheuristic search (SA / HSA)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run searches in background workers with live progress")
    _add_common(run_parser)
    run_parser.add_argument("--emit-interval", type=float, default=80.0, help="Progress throttle (ms)")
    run_parser.add_argument("--log-every", type=float, default=0.5, help="Seconds between progress lines")
    run_parser.set_defaults(func=run)

    compare_parser = subparsers.add_parser("compare", help="Repeat runs and print summary statistics")
    _add_common(compare_parser)
    compare_parser.add_argument("--runs", type=int, default=5)
    compare_parser.set_defaults(func=compare)

    presets_parser = subparsers.add_parser("presets", help="List or save settings presets")
    presets_parser.add_argument("--settings", help="Settings/preset JSON file")
    presets_parser.add_argument("--save", metavar="NAME", help="Save current settings as a preset")
    presets_parser.set_defaults(func=presets)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
