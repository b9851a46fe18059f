"""Persisted daily artifact: pydantic models, build from a DailyPuzzle, JSON read/write."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .search_gen import SearchTarget

if TYPE_CHECKING:
    from .daily import DailyPuzzle

ARTIFACT_VERSION = "6.0-anytime-search"


def _check_square(grid: List[List[int]], lo: int) -> List[List[int]]:
    if len(grid) != 9 or any(len(row) != 9 for row in grid):
        raise ValueError("grid must be 9x9")
    if any(v < lo or v > 9 for row in grid for v in row):
        raise ValueError(f"grid values must lie in {lo}..9")
    return grid


class CellModel(BaseModel):
    r: int = Field(ge=0, le=8)
    c: int = Field(ge=0, le=8)


class ExtremumModel(CellModel):
    type: Literal["peak", "valley"]


class SearchTargetModel(BaseModel):
    path: List[CellModel]
    numbers: List[int]
    id: int

    @model_validator(mode="after")
    def _lengths_agree(self):
        if not self.path:
            raise ValueError("search target path is empty")
        if len(self.path) != len(self.numbers):
            raise ValueError(f"path has {len(self.path)} cells but {len(self.numbers)} numbers")
        return self


class VariantModel(BaseModel):
    layout: List[int]
    targets: List[SearchTargetModel]
    simon: List[CellModel]
    simonValues: List[int]
    complete: bool


class MetaModel(BaseModel):
    version: str = ARTIFACT_VERSION
    date: str
    seed: int
    effectiveSeed: int
    generatedAt: str
    complete: bool


class DataModel(BaseModel):
    solution: List[List[int]]
    puzzle: List[List[int]]
    chunks: List[List[List[int]]]
    peaksValleys: List[ExtremumModel]
    searchTargets: List[SearchTargetModel]
    simonValues: List[int]
    simonCoords: List[CellModel]
    codeSequence: List[int]
    variantTargets: Dict[str, VariantModel] = Field(default_factory=dict)

    @field_validator("solution")
    @classmethod
    def _solution_shape(cls, v):
        return _check_square(v, 1)

    @field_validator("puzzle")
    @classmethod
    def _puzzle_shape(cls, v):
        return _check_square(v, 0)

    @field_validator("chunks")
    @classmethod
    def _chunk_shape(cls, v):
        if len(v) != 9 or any(len(ch) != 3 or any(len(row) != 3 for row in ch) for ch in v):
            raise ValueError("chunks must be nine 3x3 blocks")
        return v


class DailyArtifact(BaseModel):
    meta: MetaModel
    data: DataModel


def _target_models(targets: List[SearchTarget]) -> List[SearchTargetModel]:
    return [SearchTargetModel.model_validate(t.to_dict()) for t in targets]


def _cell_models(cells) -> List[CellModel]:
    return [CellModel(r=r, c=c) for r, c in cells]


def build_artifact(puzzle: DailyPuzzle, generated_at: Optional[str] = None) -> DailyArtifact:
    game = puzzle.game
    variants = {
        key: VariantModel(
            layout=v.layout,
            targets=_target_models(v.search.targets),
            simon=_cell_models(v.simon_cells),
            simonValues=v.simon_values,
            complete=v.search.success,
        )
        for key, v in puzzle.variants.items()
    }
    return DailyArtifact(
        meta=MetaModel(
            date=puzzle.date_label,
            seed=puzzle.base_seed,
            effectiveSeed=puzzle.effective_seed,
            generatedAt=generated_at or datetime.now(timezone.utc).isoformat(timespec="seconds"),
            complete=puzzle.complete,
        ),
        data=DataModel(
            solution=game.solution,
            puzzle=game.puzzle,
            chunks=game.chunks,
            peaksValleys=[ExtremumModel(**e) for e in puzzle.extrema.to_list()],
            searchTargets=_target_models(puzzle.search.targets),
            simonValues=puzzle.simon_values,
            simonCoords=_cell_models(puzzle.simon_cells),
            codeSequence=puzzle.code_sequence,
            variantTargets=variants,
        ),
    )


def artifact_filename(date_label: str) -> str:
    return f"daily-{date_label}.json"


def write_artifact(artifact: DailyArtifact, out_dir: str | Path) -> Path:
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / artifact_filename(artifact.meta.date)
    path.write_text(artifact.model_dump_json(indent=2), encoding="utf-8")
    return path


def read_artifact(path: str | Path) -> DailyArtifact:
    return DailyArtifact.model_validate_json(Path(path).read_text(encoding="utf-8"))


def targets_from_artifact(artifact: DailyArtifact) -> List[SearchTarget]:
    return [SearchTarget.from_dict(t.model_dump()) for t in artifact.data.searchTargets]
