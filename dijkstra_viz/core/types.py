# dijkstra_viz/core/types.py
#!/usr/bin/env python3
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Optional

Cell = Tuple[int, int]  # (row, col)


class Speed(Enum):
    SLOW = "slow"
    MEDIUM = "medium"
    FAST = "fast"

    @classmethod
    def parse(cls, value) -> "Speed":
        if isinstance(value, Speed):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"unknown speed {value!r} (expected slow, medium or fast)") from None


class RunState(Enum):
    IDLE = "Idle"
    RUNNING = "Running"
    PAUSED = "Paused"
    PATH_REPLAY = "PathReplay"
    COMPLETED = "Completed"
    EXHAUSTED = "Exhausted"
    CANCELLED = "Cancelled"

    @property
    def is_active(self) -> bool:
        return self in (RunState.RUNNING, RunState.PAUSED, RunState.PATH_REPLAY)

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.EXHAUSTED, RunState.CANCELLED)


@dataclass(frozen=True)
class VisitedRecord:
    row: int
    col: int
    order: int       # 0-based finalize rank

    @property
    def cell(self) -> Cell:
        return (self.row, self.col)


@dataclass(frozen=True)
class RunStats:
    path_length: int = 0
    nodes_visited: int = 0
    elapsed_ms: int = 0


@dataclass
class StepResult:
    status: str                   # "idle" | "running" | "done" | "no_path"
    record: Optional[VisitedRecord] = None
