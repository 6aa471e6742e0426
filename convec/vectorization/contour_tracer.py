"""
Contour tracing for vectorization.
"""

import logging
from typing import Optional

import numpy as np

from convec.vectorization.bitmap import BinaryBitmap

logger = logging.getLogger(__name__)

Point = tuple[float, float]
Contour = list[Point]

# Right, down, left, up
DIRECTIONS = ((1, 0), (0, 1), (-1, 0), (0, -1))

# Relative to the heading: right turn, straight, left turn, back
TURNS = (1, 0, 3, 2)


class ContourTracer:
    """
    Traces closed boundaries of foreground regions.

    Traces start at the first unvisited edge pixel in row-major order and
    walk clockwise along edge pixels with the region on the right hand side:
    at each step the walker prefers a right turn, then straight ahead, then a
    left turn, and only steps back at a dead end.
    """

    def __init__(self, turdsize: int = 5):
        self.turdsize = turdsize

    def trace(self, bitmap: BinaryBitmap) -> list[Contour]:
        """
        Extract contours in scan order of their start pixel.

        Contours with fewer than ``turdsize`` points are dropped.
        """
        width, height = bitmap.width, bitmap.height
        edge_mask = bitmap.edge_mask()
        edges = edge_mask.tolist()
        visited = bytearray(width * height)

        contours = []
        dropped = 0

        for index in np.flatnonzero(edge_mask).tolist():
            if visited[index]:
                continue

            path = self.trace_contour(edges, index % width, index // width, width, height, visited)
            if path is None:
                continue

            if len(path) < self.turdsize:
                dropped += 1
                continue

            contours.append(path)

        logger.debug(f"Traced {len(contours)} contours, dropped {dropped} below turdsize {self.turdsize}")
        return contours

    def trace_contour(
        self,
        edges: list[bool],
        start_x: int,
        start_y: int,
        width: int,
        height: int,
        visited: bytearray,
    ) -> Optional[Contour]:
        """
        Walk one boundary starting at (start_x, start_y).

        Stops on returning to the start, when no neighbor qualifies, or once
        the path exceeds width * height points.

        Returns:
            List of (x, y) points, or None for paths of 2 points or fewer
        """
        path = []
        limit = width * height

        x, y = start_x, start_y
        # Facing up, so the first preferred move is to the right
        heading = 3

        while True:
            visited[y * width + x] = 1
            path.append((x, y))

            found = False
            for turn in TURNS:
                direction = (heading + turn) % 4
                dx, dy = DIRECTIONS[direction]
                nx, ny = x + dx, y + dy

                if 0 <= nx < width and 0 <= ny < height and edges[ny * width + nx]:
                    x, y = nx, ny
                    heading = direction
                    found = True
                    break

            if not found or len(path) > limit:
                break

            if x == start_x and y == start_y:
                break

        return path if len(path) > 2 else None


def signed_area(contour: Contour) -> float:
    """Shoelace area; positive for clockwise contours in image coordinates."""
    area = 0.0
    count = len(contour)
    for i in range(count):
        x1, y1 = contour[i]
        x2, y2 = contour[(i + 1) % count]
        area += x1 * y2 - x2 * y1
    return area / 2.0


def normalize_winding(contours: list[Contour]) -> list[Contour]:
    """
    Give every contour the same (clockwise on screen) orientation.

    Reversed contours keep their first point.
    """
    normalized = []
    for contour in contours:
        if signed_area(contour) < 0:
            contour = [contour[0]] + contour[:0:-1]
        normalized.append(contour)
    return normalized
