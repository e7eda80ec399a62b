import configparser
from pathlib import Path

SETTINGS_PATH = Path(__file__).with_name("settings.ini")
SECTION = "engine"

SEED_SOURCE_ORDER = ("random", "pool")
MOVE_BUDGET_RANGE = (1, 100_000)
SOLVABLE_NODES_RANGE = (1, 5_000_000)

DEFAULT_SETTINGS = {
    "move_budget": "200",
    "solvable_max_nodes": "20000",
    "seed_source": "random",
    "seed_pool_path": "",
}


def _clamped_int(raw, default: str, bounds: tuple[int, int]) -> str:
    try:
        value = int(raw)
    except Exception:
        value = int(default)
    lo, hi = bounds
    if value < lo:
        value = lo
    if value > hi:
        value = hi
    return str(value)


def _sanitize(settings):
    data = dict(DEFAULT_SETTINGS)
    data.update({k: v for k, v in settings.items() if k in DEFAULT_SETTINGS})

    data["move_budget"] = _clamped_int(data["move_budget"], DEFAULT_SETTINGS["move_budget"], MOVE_BUDGET_RANGE)
    data["solvable_max_nodes"] = _clamped_int(
        data["solvable_max_nodes"], DEFAULT_SETTINGS["solvable_max_nodes"], SOLVABLE_NODES_RANGE
    )

    source = str(data["seed_source"]).strip().lower()
    if source not in SEED_SOURCE_ORDER:
        source = DEFAULT_SETTINGS["seed_source"]
    data["seed_source"] = source

    data["seed_pool_path"] = str(data["seed_pool_path"]).strip()
    return data


def load_settings():
    parser = configparser.ConfigParser()
    if not SETTINGS_PATH.exists():
        return dict(DEFAULT_SETTINGS)
    try:
        parser.read(SETTINGS_PATH, encoding="utf-8")
    except Exception:
        return dict(DEFAULT_SETTINGS)
    if SECTION not in parser:
        return dict(DEFAULT_SETTINGS)
    raw = {key: parser[SECTION].get(key, default) for key, default in DEFAULT_SETTINGS.items()}
    return _sanitize(raw)


def save_settings(settings):
    data = _sanitize(settings)
    parser = configparser.ConfigParser()
    parser[SECTION] = data
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    with SETTINGS_PATH.open("w", encoding="utf-8") as f:
        parser.write(f)
