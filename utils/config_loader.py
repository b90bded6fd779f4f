from __future__ import annotations

import json
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from core.default_config import default_config_copy


def load_config(base_path: str | Path, *, custom_name: str = "custom.json") -> dict[str, Any]:
    """
    Load configuration with the following precedence:
    1. Built-in defaults.
    2. LICIT_PRO_CONFIG_JSON (inline JSON) or LICIT_PRO_CONFIG_PATH (file).
    3. Optional base config file when present.
    4. Optional custom overrides placed next to the base file or in the cwd.
    """
    config = default_config_copy()

    env_json = os.environ.get("LICIT_PRO_CONFIG_JSON")
    env_path = os.environ.get("LICIT_PRO_CONFIG_PATH")
    if env_json:
        config = _deep_merge(config, json.loads(env_json))
    elif env_path:
        path = Path(env_path)
        if not path.exists():
            raise FileNotFoundError(f"Environment config path '{env_path}' not found.")
        config = _deep_merge(config, read_config_file(path))

    base_file = Path(base_path)
    base_dir = None
    if base_file.is_file():
        config = _deep_merge(config, read_config_file(base_file))
        base_dir = base_file.parent

    custom_file = _find_file(custom_name, _candidate_dirs(base_dir))
    if custom_file and custom_file != base_file:
        config = _deep_merge(config, read_config_file(custom_file))

    return config


def _candidate_dirs(base_dir: Optional[Path]) -> list[Path]:
    dirs = []
    if base_dir:
        dirs.append(base_dir)
    dirs.append(Path.cwd())
    return dirs


def _find_file(name: str, directories: Iterable[Path]) -> Optional[Path]:
    seen: set[Path] = set()
    for directory in directories:
        candidate = directory / name
        resolved = candidate.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        if candidate.is_file():
            return candidate
    return None


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = deepcopy(dict(base))
    for key, value in overrides.items():
        if (
            key in merged
            and isinstance(merged[key], Mapping)
            and isinstance(value, Mapping)
        ):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def read_config_file(path: Path) -> Mapping[str, Any]:
    if path.suffix.lower() != ".json":
        raise ValueError(f"Unsupported config format: {path}")
    with path.open("r", encoding="utf-8") as fp:
        data = json.load(fp)
    if not isinstance(data, Mapping):
        raise ValueError(f"Configuration file {path} must contain a mapping.")
    return data


def dump_config(path: Path, data: Mapping[str, Any]) -> None:
    path = Path(path)
    if path.suffix.lower() != ".json":
        raise ValueError(f"Unsupported config format: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fp:
        json.dump(data, fp, ensure_ascii=False, indent=2)
