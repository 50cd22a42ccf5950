from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from .errors import OutOfMemory, PointerUnderflow
from .nodes import CELL_MASK

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_CELLS = 4096
DEFAULT_MAX_CELLS = 1 << 24  # 64 MiB of uint32 cells


class Tape:
    """Right-growing memory of unsigned 32-bit cells with a single cursor.

    The cursor can never go below zero. Moving past the end grows the array
    (doubling, zero-filled) up to `max_cells`; the tape never shrinks.
    """

    def __init__(self, initial_cells: int = DEFAULT_INITIAL_CELLS, max_cells: int = DEFAULT_MAX_CELLS):
        if initial_cells < 1:
            raise ValueError("initial_cells must be at least 1")
        if max_cells < initial_cells:
            raise ValueError("max_cells must not be smaller than initial_cells")
        self.max_cells = max_cells
        self.cells = np.zeros(initial_cells, dtype=np.uint32)
        self.cursor = 0
        self.high_water = 0

    @property
    def length(self) -> int:
        return len(self.cells)

    # ===== Cell access =====

    def read(self) -> int:
        return int(self.cells[self.cursor])

    def write(self, value: int) -> None:
        self.cells[self.cursor] = value & CELL_MASK

    def apply_delta(self, delta: int) -> None:
        self.cells[self.cursor] = (int(self.cells[self.cursor]) + delta) & CELL_MASK

    # ===== Cursor =====

    def move(self, displacement: int) -> None:
        target = self.cursor + displacement
        if target < 0:
            raise PointerUnderflow(
                message=f"pointer moved to {target}, left of cell 0 (tape is not cyclic)"
            )
        if target >= len(self.cells):
            self._grow(target)
        self.cursor = target
        if target > self.high_water:
            self.high_water = target

    def _grow(self, index: int) -> None:
        if index >= self.max_cells:
            raise OutOfMemory(
                message=f"pointer moved to {index}, tape is limited to {self.max_cells} cells"
            )
        old = len(self.cells)
        new = min(max(old * 2, index + 1), self.max_cells)
        grown = np.zeros(new, dtype=np.uint32)
        grown[:old] = self.cells
        self.cells = grown
        logger.debug("tape grown from %d to %d cells", old, new)

    # ===== Inspection =====

    def snapshot(self, n: Optional[int] = None) -> List[int]:
        """First `n` cells as ints; defaults to every cell the cursor reached."""
        if n is None:
            n = self.high_water + 1
        n = min(n, len(self.cells))
        return [int(v) for v in self.cells[:n]]

    def dump(self, width: int = 8) -> str:
        values = self.snapshot()
        rows = []
        for i in range(0, len(values), width):
            row = " ".join(str(v) for v in values[i:i + width])
            rows.append(f"{i:6d}: {row}")
        return "\n".join(rows)
