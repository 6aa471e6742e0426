"""
Corner smoothing for traced contours.
"""

import math

from convec.vectorization.contour_tracer import Contour, Point


class PathSmoother:
    """
    Softens sharp turns with a 3-point centroid.

    A point is replaced by the average of itself and its two neighbors when
    the turn between the incoming and outgoing edges is sharper than
    ``pi - tolerance``. Points are never added, removed or reordered.
    """

    def __init__(self, enabled: bool = True, tolerance: float = 1.0):
        self.enabled = enabled
        self.tolerance = tolerance

    def smooth(self, contour: Contour) -> Contour:
        """Smooth a closed contour; neighbors wrap around the ends."""
        if not self.enabled or len(contour) < 3:
            return contour

        count = len(contour)
        smoothed = []

        for i in range(count):
            prev = contour[i - 1]
            curr = contour[i]
            nxt = contour[(i + 1) % count]

            if self.should_smooth(prev, curr, nxt):
                smoothed.append((
                    (prev[0] + curr[0] + nxt[0]) / 3,
                    (prev[1] + curr[1] + nxt[1]) / 3,
                ))
            else:
                smoothed.append(curr)

        return smoothed

    def should_smooth(self, prev: Point, curr: Point, nxt: Point) -> bool:
        dx1 = curr[0] - prev[0]
        dy1 = curr[1] - prev[1]
        dx2 = nxt[0] - curr[0]
        dy2 = nxt[1] - curr[1]

        len1 = math.hypot(dx1, dy1)
        len2 = math.hypot(dx2, dy2)
        if len1 == 0 or len2 == 0:
            return False

        cosine = (dx1 * dx2 + dy1 * dy2) / (len1 * len2)
        angle = math.acos(max(-1.0, min(1.0, cosine)))

        return angle < math.pi - self.tolerance
