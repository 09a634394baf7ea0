import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from .space import RealVectorStateSpace


@dataclass
class GridMap:
    """
    Simple 2D occupancy grid.
    data: numpy array (H, W), 1/True for occupied, 0/False for free.
    resolution: meters per cell.
    origin: world coordinates of grid index (0,0) cell center.
    """

    data: np.ndarray
    resolution: float
    origin: Tuple[float, float] = (0.0, 0.0)

    def __post_init__(self):
        self.data = np.asarray(self.data)
        if self.data.ndim != 2:
            raise ValueError(f"Expected 2D occupancy grid, got shape {self.data.shape}")
        if not math.isfinite(self.resolution) or self.resolution <= 0:
            raise ValueError("resolution must be finite and > 0")

    @classmethod
    def empty(cls, size: Tuple[float, float], resolution: float = 0.01) -> "GridMap":
        w_cells = int(round(size[0] / resolution)) + 1
        h_cells = int(round(size[1] / resolution)) + 1
        return cls(np.zeros((h_cells, w_cells), dtype=np.uint8), resolution)

    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    def world_to_grid(self, x: float, y: float) -> Tuple[int, int]:
        gx = int(round((x - self.origin[0]) / self.resolution))
        gy = int(round((y - self.origin[1]) / self.resolution))
        return gx, gy

    def grid_to_world(self, gx: int, gy: int) -> Tuple[float, float]:
        x = gx * self.resolution + self.origin[0]
        y = gy * self.resolution + self.origin[1]
        return x, y

    def in_bounds(self, gx: int, gy: int) -> bool:
        h, w = self.data.shape
        return 0 <= gx < w and 0 <= gy < h

    def is_occupied_index(self, gx: int, gy: int) -> bool:
        if not self.in_bounds(gx, gy):
            return True
        return bool(self.data[gy, gx])

    def is_occupied(self, x: float, y: float) -> bool:
        gx, gy = self.world_to_grid(x, y)
        return self.is_occupied_index(gx, gy)

    def fill_rect(self, lower: Sequence[float], upper: Sequence[float]) -> None:
        """Mark every cell whose center lies in the world-frame box [lower, upper] as occupied."""
        gx0, gy0 = self.world_to_grid(lower[0], lower[1])
        gx1, gy1 = self.world_to_grid(upper[0], upper[1])
        h, w = self.data.shape
        gx0, gx1 = max(0, gx0), min(w - 1, gx1)
        gy0, gy1 = max(0, gy0), min(h - 1, gy1)
        if gx0 <= gx1 and gy0 <= gy1:
            self.data[gy0 : gy1 + 1, gx0 : gx1 + 1] = 1
        self.__dict__.pop("_free_indices_cache", None)

    def state_space(self) -> RealVectorStateSpace:
        """Bounding box of the grid cell centers as a 2D state space."""
        h, w = self.data.shape
        x1, y1 = self.grid_to_world(w - 1, h - 1)
        return RealVectorStateSpace(list(self.origin), [x1, y1])

    def copy(self) -> "GridMap":
        return GridMap(self.data.copy(), self.resolution, self.origin)

    def inflate(self, margin: float) -> "GridMap":
        """
        Inflate occupied cells by margin (meters) to add safety buffer.
        Simple convolution-free dilation using a square window.
        """
        cells = int(math.ceil(margin / self.resolution))
        if cells <= 0:
            return self.copy()
        padded = np.pad(self.data, cells, constant_values=1)
        h, w = self.data.shape
        inflated = np.zeros_like(self.data)
        for y in range(h):
            for x in range(w):
                sub = padded[y : y + 2 * cells + 1, x : x + 2 * cells + 1]
                inflated[y, x] = 1 if np.any(sub) else 0
        return GridMap(inflated, self.resolution, self.origin)

    def random_free_point(self, rng: np.random.Generator) -> np.ndarray:
        """Sample a free cell center uniformly."""
        if not hasattr(self, "_free_indices_cache"):
            free_indices = np.argwhere(self.data == 0)
            if len(free_indices) == 0:
                raise ValueError("Map has no free cells")
            self._free_indices_cache = free_indices
        free_indices = self._free_indices_cache
        idx = rng.integers(0, len(free_indices))
        gy, gx = free_indices[idx]
        return np.array(self.grid_to_world(int(gx), int(gy)), dtype=float)
