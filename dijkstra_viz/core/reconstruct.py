# dijkstra_viz/core/reconstruct.py
#!/usr/bin/env python3
from math import inf
from typing import List, Optional

from dijkstra_viz.core.dijkstra import SearchState
from dijkstra_viz.core.types import Cell


def reconstruct(state: SearchState, end: Cell) -> Optional[List[Cell]]:
    """Shortest route start -> end from the predecessor arena, or None when end was never reached."""
    if state.distance_of(end) == inf:
        return None
    path: List[Cell] = []
    cur: Optional[Cell] = end
    while cur is not None:
        path.append(cur)
        cur = state.previous_of(cur)
    path.reverse()
    return path
