# dijkstra_viz/core/grid.py
#!/usr/bin/env python3
import json
import operator
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import FrozenSet, Iterable, List, Union

from dijkstra_viz.core.errors import ConfigurationError
from dijkstra_viz.core.types import Cell

# east, south, west, north -- the order decides visitation ties
DIRECTIONS = ((0, 1), (1, 0), (0, -1), (-1, 0))


@dataclass(frozen=True)
class GridModel:
    rows: int
    cols: int
    start: Cell
    end: Cell
    barriers: FrozenSet[Cell] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "rows", _as_int(self.rows, "rows"))
        object.__setattr__(self, "cols", _as_int(self.cols, "cols"))
        if self.rows <= 0 or self.cols <= 0:
            raise ConfigurationError(f"grid dimensions must be positive, got {self.rows}x{self.cols}")
        object.__setattr__(self, "start", _as_cell(self.start, "start"))
        object.__setattr__(self, "end", _as_cell(self.end, "end"))
        object.__setattr__(self, "barriers", frozenset(_as_cell(b, "barrier") for b in self.barriers))

        for name, c in (("start", self.start), ("end", self.end)):
            if not self.in_bounds(c):
                raise ConfigurationError(f"{name} {c} out of bounds for {self.rows}x{self.cols} grid")
            if c in self.barriers:
                raise ConfigurationError(f"{name} {c} is on a barrier")
        for b in self.barriers:
            if not self.in_bounds(b):
                raise ConfigurationError(f"barrier {b} out of bounds for {self.rows}x{self.cols} grid")

    # ---------- queries ----------
    def in_bounds(self, c: Cell) -> bool:
        r, col = c
        return 0 <= r < self.rows and 0 <= col < self.cols

    def is_barrier(self, r: int, c: int) -> bool:
        return (r, c) in self.barriers

    def neighbors(self, r: int, c: int) -> List[Cell]:
        """In-bounds orthogonal neighbors of (r, c): east, south, west, north."""
        out: List[Cell] = []
        for dr, dc in DIRECTIONS:
            n = (r + dr, c + dc)
            if self.in_bounds(n):
                out.append(n)
        return out

    def index(self, c: Cell) -> int:
        """Row-major position of a cell."""
        return c[0] * self.cols + c[1]

    @property
    def open_cells(self) -> int:
        return self.rows * self.cols - len(self.barriers)

    # ---------- editing (returns new models) ----------
    def with_barrier_toggled(self, c: Cell) -> "GridModel":
        c = _as_cell(c, "cell")
        if not self.in_bounds(c) or c in (self.start, self.end):
            return self
        return replace(self, barriers=self.barriers ^ {c})

    def with_barriers(self, cells: Iterable[Cell], present: bool = True) -> "GridModel":
        cells = {_as_cell(c, "cell") for c in cells}
        cells = {c for c in cells if self.in_bounds(c) and c not in (self.start, self.end)}
        barriers = self.barriers | cells if present else self.barriers - cells
        return replace(self, barriers=barriers)

    def with_start(self, c: Cell) -> "GridModel":
        c = _as_cell(c, "start")
        if not self.in_bounds(c) or c in self.barriers or c == self.end:
            return self
        return replace(self, start=c)

    def with_end(self, c: Cell) -> "GridModel":
        c = _as_cell(c, "end")
        if not self.in_bounds(c) or c in self.barriers or c == self.start:
            return self
        return replace(self, end=c)

    def cleared(self) -> "GridModel":
        return replace(self, barriers=frozenset())

    # ---------- serialization ----------
    def to_dict(self) -> dict:
        return {
            "rows": self.rows,
            "cols": self.cols,
            "start": list(self.start),
            "end": list(self.end),
            "barriers": [list(b) for b in sorted(self.barriers)],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GridModel":
        try:
            return cls(
                rows=data["rows"],
                cols=data["cols"],
                start=tuple(data["start"]),
                end=tuple(data["end"]),
                barriers=frozenset(tuple(b) for b in data.get("barriers", [])),
            )
        except ConfigurationError:
            raise
        except (KeyError, TypeError, ValueError) as ex:
            raise ConfigurationError(f"malformed map data: {ex!r}") from ex


def _as_int(value, what: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{what} must be an integer, got {value!r}")
    try:
        return operator.index(value)
    except TypeError:
        raise ConfigurationError(f"{what} must be an integer, got {value!r}") from None


def _as_cell(value, what: str) -> Cell:
    try:
        r, c = value
    except (TypeError, ValueError):
        raise ConfigurationError(f"{what} must be a (row, col) pair, got {value!r}") from None
    return (_as_int(r, f"{what} row"), _as_int(c, f"{what} col"))


# ---------- map files ----------
def load_map(path: Union[str, Path]) -> GridModel:
    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as ex:
            raise ConfigurationError(f"{path}: not valid JSON ({ex.msg})") from ex
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a JSON object")
    return GridModel.from_dict(data)


def dump_map(grid: GridModel, path: Union[str, Path]) -> None:
    with open(path, "w") as f:
        json.dump(grid.to_dict(), f, indent=2)
