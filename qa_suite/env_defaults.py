"""Read suite defaults from the workspace `.env.defaults` and `.env` files.

Values from `.env` override `.env.defaults`; real environment variables
override both (see `qa_suite.config`). The files are resolved relative to the
repository root so the suite behaves the same whether pytest is started from
the root or from inside `qa_suite/`.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict

ENV_FILES = (".env.defaults", ".env")


def _parse_env_file(path: Path) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
            value = value[1:-1]
        values[key.strip()] = value
    return values


@lru_cache(maxsize=1)
def _load_env_defaults() -> Dict[str, str]:
    repo_root = Path(__file__).resolve().parents[1]
    defaults: Dict[str, str] = {}
    for name in ENV_FILES:
        env_file = repo_root / name
        if env_file.exists():
            defaults.update(_parse_env_file(env_file))
    return defaults


def get_env_default(key: str) -> str | None:
    return _load_env_defaults().get(key)
