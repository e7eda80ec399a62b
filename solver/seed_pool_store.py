import json
import random
from pathlib import Path
from typing import Optional

POOL_KEYS = ("solvable", "unknown", "proven_unsolvable")


def default_seed_pool_path() -> Path:
    return Path(__file__).with_name("seed_pool.json")


def load_seed_pool(path: Optional[Path] = None) -> dict[str, list[int]]:
    out = {key: [] for key in POOL_KEYS}
    path = path if path is not None else default_seed_pool_path()
    if not path.exists():
        return out
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return out
    if not isinstance(data, dict):
        return out

    for key in POOL_KEYS:
        raw = data.get(key, [])
        if not isinstance(raw, list):
            continue
        seeds: list[int] = []
        for value in raw:
            try:
                seed = int(value)
            except Exception:
                continue
            if seed > 0:
                seeds.append(seed)
        out[key] = seeds
    return out


def choose_solvable_seed(path: Optional[Path] = None, rng: random.Random | None = None) -> int | None:
    options = load_seed_pool(path)["solvable"]
    if not options:
        return None
    pick_rng = rng if rng is not None else random
    return int(options[pick_rng.randrange(len(options))])
