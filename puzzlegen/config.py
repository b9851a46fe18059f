"""YAML-backed settings for the daily generator: DotDict loading, CLI overrides, typed dataclasses."""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict
import yaml

from .search_gen import SearchConfig
from .sudoku_gen import DEFAULT_HOLES


class DotDict(dict):
    __getattr__ = dict.get
    __setattr__ = dict.__setitem__
    __delattr__ = dict.__delitem__


def load_yaml(path: str | Path) -> DotDict:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return DotDict(data)


def merge_overrides(cfg: Dict[str, Any], **overrides) -> Dict[str, Any]:
    for k, v in overrides.items():
        if v is None:
            continue
        cfg[k] = v
    return cfg


@dataclass
class SudokuSettings:
    holes: int = DEFAULT_HOLES
    max_restarts: int = 20


@dataclass
class DailyConfig:
    sudoku: SudokuSettings = field(default_factory=SudokuSettings)
    search: SearchConfig = field(default_factory=SearchConfig)
    max_ms: int = 60_000  # search wall-clock budget per board
    block_retries: int = 500
    coverage_retries: int = 200
    strict: bool = False
    variants: list[str] = field(default_factory=list)  # extra jigsaw layouts to search, e.g. ["LR", "TB"]
    exclude_values: list[int] = field(default_factory=list)  # never peaks/valleys
    code_length: int = 5
    out_dir: str = "daily"


def _pick(cls, data: Dict[str, Any] | None) -> Dict[str, Any]:
    # unknown keys are an error, not silently ignored
    data = dict(data or {})
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"unknown {cls.__name__} keys: {sorted(unknown)}")
    return data


def config_from_mapping(data: Dict[str, Any] | None) -> DailyConfig:
    data = _pick(DailyConfig, data)
    sudoku = SudokuSettings(**_pick(SudokuSettings, data.pop("sudoku", None)))
    search = SearchConfig(**_pick(SearchConfig, data.pop("search", None)))
    for key in ("variants", "exclude_values"):
        if key in data and data[key] is None:
            data[key] = []
    return DailyConfig(sudoku=sudoku, search=search, **data)


def load_config(path: str | Path | None = None, **overrides) -> DailyConfig:
    """YAML file (optional) plus top-level overrides; None overrides are ignored."""
    cfg = load_yaml(path) if path else DotDict()
    merge_overrides(cfg, **overrides)
    return config_from_mapping(cfg)
