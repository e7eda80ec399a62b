from __future__ import annotations

import argparse
import json
import os
import random
import time
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Callable, Optional

from engine.deal import MAX_SEED
from solver.analyzer import COMPLETE_POLICY, DEFAULT_POLICY, SOLVABLE_LIMITS, SearchLimits, analyze_seed
from solver.seed_pool_store import POOL_KEYS, default_seed_pool_path, load_seed_pool

# pool list name -> analyzer status
POOL_STATUS = {
    "solvable": "solved",
    "unknown": "unknown",
    "proven_unsolvable": "proven_unsolvable",
}


@dataclass(frozen=True, slots=True)
class SeedRow:
    seed: int
    status: str
    reason: Optional[str] = None
    solution_len: Optional[int] = None
    expanded_nodes: int = 0


def analyze_row(seed: int, max_nodes: int, max_seconds: Optional[float], max_frontier: int, complete: bool) -> SeedRow:
    limits = SearchLimits(max_nodes=max_nodes, max_seconds=max_seconds, max_frontier=max_frontier)
    result = analyze_seed(seed=seed, limits=limits, policy=COMPLETE_POLICY if complete else DEFAULT_POLICY)
    metrics = result.metrics
    return SeedRow(
        seed=seed,
        status=result.status,
        reason=metrics.get("reason"),
        solution_len=metrics.get("solution_len"),
        expanded_nodes=int(metrics.get("expanded_nodes", 0)),
    )


def _drain(exe: Executor, job: Callable[[int], SeedRow], seeds: list[int], on_row: Callable[[SeedRow], None]) -> None:
    for fut in as_completed([exe.submit(job, seed) for seed in seeds]):
        on_row(fut.result())


def run_jobs(
    seeds: list[int],
    job: Callable[[int], SeedRow],
    workers: int,
    on_row: Callable[[SeedRow], None],
    executors: tuple[type[Executor], ...] = (ProcessPoolExecutor, ThreadPoolExecutor),
) -> None:
    """
    Runs ``job`` for every seed and hands each row to ``on_row`` as it completes.
    Executors are tried in order; one that cannot start (sandboxed process pools
    raise PermissionError) falls through to the next.
    """
    if workers <= 1:
        for seed in seeds:
            on_row(job(seed))
        return

    for executor_cls in executors[:-1]:
        try:
            with executor_cls(max_workers=workers) as exe:
                _drain(exe, job, seeds, on_row)
            return
        except PermissionError:
            print(f"{executor_cls.__name__} unavailable in current environment; falling back")
    with executors[-1](max_workers=workers) as exe:
        _drain(exe, job, seeds, on_row)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a pool of solvable Klondike seeds.")
    parser.add_argument("--start-seed", type=int, default=None, help="Start seed inclusive. Default: random.")
    parser.add_argument("--count", type=int, required=True, help="How many seeds to scan.")
    parser.add_argument(
        "--workers", type=int, default=max(1, (os.cpu_count() or 1) - 1), help="Parallel workers."
    )
    parser.add_argument("--max-seconds", type=float, default=None, help="Optional per-seed search time budget.")
    parser.add_argument("--max-nodes", type=int, default=SOLVABLE_LIMITS.max_nodes, help="Per-seed node budget.")
    parser.add_argument("--max-frontier", type=int, default=500_000, help="Per-seed frontier budget.")
    parser.add_argument("--complete", action="store_true", help="Disable pruning so exhaustion proves unsolvable.")
    parser.add_argument("--progress-every", type=int, default=10, help="Print progress every N completed seeds.")
    parser.add_argument("--save-interval-sec", type=float, default=60.0, help="Checkpoint save interval in seconds.")
    parser.add_argument("--out", type=str, default="", help="Output JSON path. Default: solver/seed_pool.json")
    parser.add_argument("--overwrite", action="store_true", help="Overwrite output instead of merging existing json.")
    args = parser.parse_args(argv)
    if not args.out:
        args.out = str(default_seed_pool_path())
    return args


def load_existing_rows(path: Path) -> list[SeedRow]:
    """Seeds already recorded in a pool file, as status-only rows."""
    pool = load_seed_pool(path)
    rows: list[SeedRow] = []
    for key in POOL_KEYS:
        rows.extend(SeedRow(seed=seed, status=POOL_STATUS[key]) for seed in pool[key])
    return rows


def merge_rows(existing: list[SeedRow], incoming: list[SeedRow]) -> list[SeedRow]:
    by_seed = {row.seed: row for row in existing}
    by_seed.update((row.seed, row) for row in incoming)
    return [by_seed[seed] for seed in sorted(by_seed)]


def build_payload(
    args: argparse.Namespace,
    existing_rows: list[SeedRow],
    rows: list[SeedRow],
    started: float,
    in_progress: bool,
) -> dict:
    merged = merge_rows(existing_rows, rows)
    pools = {key: [row.seed for row in merged if row.status == status] for key, status in POOL_STATUS.items()}
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "in_progress": in_progress,
        "search": {
            "max_seconds": args.max_seconds,
            "max_nodes": args.max_nodes,
            "max_frontier": args.max_frontier,
            "complete": args.complete,
        },
        "source": {
            "start_seed": args.start_seed,
            "count": args.count,
            "merged_existing": len(existing_rows),
            "incoming": len(rows),
        },
        "stats": {
            "scanned": len(merged),
            "solved": len(pools["solvable"]),
            "unknown": len(pools["unknown"]),
            "proven_unsolvable": len(pools["proven_unsolvable"]),
        },
        "build_elapsed_ms": round((time.perf_counter() - started) * 1000.0, 3),
        **pools,
    }


def write_pool(path: Path, payload: dict) -> None:
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)


class PoolBuild:
    """Collects rows as workers finish; prints progress and saves periodic checkpoints."""

    def __init__(self, args: argparse.Namespace, out_path: Path, existing_rows: list[SeedRow], total: int):
        self.args = args
        self.out_path = out_path
        self.existing_rows = existing_rows
        self.total = total
        self.rows: list[SeedRow] = []
        self.started = time.perf_counter()
        self.last_save_at = self.started

    def add(self, row: SeedRow) -> None:
        self.rows.append(row)
        done = len(self.rows)
        every = self.args.progress_every
        if every > 0 and done % every == 0:
            elapsed = (time.perf_counter() - self.started) * 1000.0
            print(f"progress {done}/{self.total} elapsed_ms={elapsed:.1f}")
        interval = self.args.save_interval_sec
        if interval > 0 and time.perf_counter() - self.last_save_at >= interval and done < self.total:
            payload = self.save(in_progress=True)
            print(f"checkpoint saved out={self.out_path} done={done}/{self.total} solved={payload['stats']['solved']}")

    def save(self, in_progress: bool) -> dict:
        payload = build_payload(self.args, self.existing_rows, self.rows, self.started, in_progress=in_progress)
        write_pool(self.out_path, payload)
        self.last_save_at = time.perf_counter()
        return payload


def main(argv=None) -> dict:
    args = parse_args(argv)
    if args.start_seed is None:
        args.start_seed = random.SystemRandom().randrange(1, MAX_SEED)
        print(f"start-seed not set; selected random start_seed={args.start_seed}")
    if args.start_seed < 1:
        raise SystemExit("--start-seed must be positive")

    out_path = Path(args.out).expanduser()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    existing_rows = [] if args.overwrite else load_existing_rows(out_path)
    seeds = list(range(args.start_seed, args.start_seed + args.count))

    build = PoolBuild(args, out_path, existing_rows, total=len(seeds))
    job = partial(
        analyze_row,
        max_nodes=args.max_nodes,
        max_seconds=args.max_seconds,
        max_frontier=args.max_frontier,
        complete=args.complete,
    )
    run_jobs(seeds, job, args.workers, build.add)

    payload = build.save(in_progress=False)
    stats = payload["stats"]
    print(
        f"done out={out_path} scanned={stats['scanned']} solved={stats['solved']} "
        f"unknown={stats['unknown']} proven_unsolvable={stats['proven_unsolvable']} "
        f"merged_existing={len(existing_rows)} incoming={len(build.rows)}"
    )
    return payload


if __name__ == "__main__":
    main()
