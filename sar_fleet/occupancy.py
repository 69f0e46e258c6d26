"""
Occupancy Volume for 3D Path Planning

PURPOSE:
    Discretize 3D space into voxel cells that store an occupancy probability.
    Populated by the environment from buildings and obstacles, queried by the
    state validator for every planner sample.

FEATURES:
    - 1m cell resolution (configurable)
    - Sparse storage: only marked cells are kept, everything else is free
    - Nearest-cell lookups, no interpolation
    - Box and cylinder region marking
"""

import numpy as np
from typing import Dict, Tuple, Sequence, Union

Cell = Tuple[int, int, int]


class OccupancyVolume:
    """
    Sparse 3D occupancy grid.

    Cells never written read as 0.0 (free). Probabilities between
    ``free_threshold`` and ``occupied_threshold`` are indeterminate; callers
    that need a safe answer should use ``is_free``.
    """

    def __init__(
        self,
        resolution: float = 1.0,
        occupied_threshold: float = 0.80,
        free_threshold: float = 0.20
    ):
        """
        Initialize occupancy volume.

        Args:
            resolution: Edge length of a cell (meters)
            occupied_threshold: Probability at or above which a cell is blocked
            free_threshold: Probability at or below which a cell is traversable
        """
        if resolution <= 0:
            raise ValueError(f"resolution must be positive, got {resolution}")
        self.resolution = float(resolution)
        self.occupied_threshold = occupied_threshold
        self.free_threshold = free_threshold

        # Marked cells only (ix, iy, iz) -> probability
        self._cells: Dict[Cell, float] = {}

    def world_to_cell(self, position: np.ndarray) -> Cell:
        """
        Convert a world position to the index of its nearest cell.

        Args:
            position: [x, y, z] in world frame

        Returns:
            (ix, iy, iz) cell indices
        """
        idx = np.floor(np.asarray(position, dtype=float)[:3] / self.resolution + 0.5).astype(int)
        return (int(idx[0]), int(idx[1]), int(idx[2]))

    def cell_to_world(self, cell: Cell) -> np.ndarray:
        """
        Convert cell indices to the world position of the cell center.

        Args:
            cell: (ix, iy, iz) cell indices

        Returns:
            [x, y, z] position
        """
        return np.asarray(cell, dtype=float) * self.resolution

    def set_occupancy(
        self,
        points: Union[np.ndarray, Sequence[Sequence[float]]],
        values: Union[float, np.ndarray, Sequence[float]]
    ) -> int:
        """
        Mark a batch of cells.

        Args:
            points: (N, 3) world positions
            values: Scalar or (N,) probabilities, clipped to [0, 1]

        Returns:
            Number of points written
        """
        pts = np.asarray(points, dtype=float).reshape(-1, 3)
        vals = np.broadcast_to(np.clip(np.asarray(values, dtype=float), 0.0, 1.0), (len(pts),))
        indices = np.floor(pts / self.resolution + 0.5).astype(int)

        for (ix, iy, iz), value in zip(indices.tolist(), vals.tolist()):
            self._cells[(ix, iy, iz)] = value

        return len(pts)

    def occupancy(self, position: np.ndarray) -> float:
        """
        Occupancy probability of the nearest cell.

        Args:
            position: [x, y, z] in world frame

        Returns:
            Probability in [0, 1]; 0.0 for cells never marked
        """
        return self._cells.get(self.world_to_cell(position), 0.0)

    def occupancy_many(self, positions: np.ndarray) -> np.ndarray:
        """Vectorized ``occupancy`` for an (N, 3) array."""
        pts = np.asarray(positions, dtype=float).reshape(-1, 3)
        indices = np.floor(pts / self.resolution + 0.5).astype(int)
        cells = self._cells
        return np.array([cells.get(tuple(idx), 0.0) for idx in indices.tolist()], dtype=float)

    def is_occupied(self, position: np.ndarray) -> bool:
        """True if the nearest cell is at or above the occupied threshold."""
        return self.occupancy(position) >= self.occupied_threshold

    def is_free(self, position: np.ndarray) -> bool:
        """True if the nearest cell is at or below the free threshold."""
        return self.occupancy(position) <= self.free_threshold

    def mark_box(
        self,
        min_corner: np.ndarray,
        max_corner: np.ndarray,
        value: float = 1.0
    ) -> int:
        """
        Mark every grid point inside an axis-aligned box (inclusive).

        Args:
            min_corner: [x, y, z] lowest corner
            max_corner: [x, y, z] highest corner
            value: Probability to store

        Returns:
            Number of cells marked
        """
        lo = np.asarray(min_corner, dtype=float)
        hi = np.asarray(max_corner, dtype=float)
        if np.any(hi < lo):
            raise ValueError(f"Box max corner {hi} below min corner {lo}")

        axes = [np.arange(lo[i], hi[i] + 1e-9, self.resolution) for i in range(3)]
        X, Y, Z = np.meshgrid(*axes, indexing='ij')
        points = np.column_stack([X.ravel(), Y.ravel(), Z.ravel()])
        return self.set_occupancy(points, value)

    def mark_cylinder(
        self,
        center_xy: np.ndarray,
        radius: float,
        height: float,
        base_z: float = 0.0,
        value: float = 1.0
    ) -> int:
        """
        Mark all cells whose centers lie inside a vertical cylinder.

        Args:
            center_xy: [x, y] cylinder axis
            radius: Cylinder radius
            height: Cylinder height above ``base_z``
            base_z: Bottom of the cylinder
            value: Probability to store

        Returns:
            Number of cells marked
        """
        cx, cy = float(center_xy[0]), float(center_xy[1])
        ix_min, iy_min, iz_min = self.world_to_cell([cx - radius, cy - radius, base_z])
        ix_max, iy_max, iz_max = self.world_to_cell([cx + radius, cy + radius, base_z + height])

        count = 0
        for ix in range(ix_min, ix_max + 1):
            for iy in range(iy_min, iy_max + 1):
                center = self.cell_to_world((ix, iy, 0))
                # Check if cell center is inside the footprint circle
                if np.hypot(center[0] - cx, center[1] - cy) > radius:
                    continue
                for iz in range(iz_min, iz_max + 1):
                    self._cells[(ix, iy, iz)] = float(np.clip(value, 0.0, 1.0))
                    count += 1

        return count

    def clear(self):
        """Forget every marked cell."""
        self._cells.clear()

    def __len__(self):
        return len(self._cells)

    def stats(self) -> dict:
        """
        Get occupancy statistics.

        Returns:
            Dictionary with counts of marked cells by threshold class
        """
        values = np.fromiter(self._cells.values(), dtype=float, count=len(self._cells))
        occupied = int(np.count_nonzero(values >= self.occupied_threshold))
        free = int(np.count_nonzero(values <= self.free_threshold))

        return {
            'marked_cells': len(values),
            'occupied_cells': occupied,
            'free_cells': free,
            'indeterminate_cells': len(values) - occupied - free,
            'resolution': self.resolution,
        }
