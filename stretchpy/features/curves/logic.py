from typing import List, Sequence, Tuple
import numpy as np
from stretchpy.domain.types import CurvePoint


class CurveFunction:
    """
    Monotone cubic (Fritsch-Carlson) interpolant over sparse control points.

    The curve is anchored at (0, 0) and (1, 1) unless the caller's first/last
    point already sits on the corresponding edge. Outside the control point
    range the curve is flat: it returns the first or last y.
    """

    def __init__(self, points: Sequence[CurvePoint] = ()):
        p = [(float(x), float(y)) for x, y in points]

        anchored: List[Tuple[float, float]] = []
        if not p or (p[0][0] > 0.0 and p[0][1] > 0.0):
            anchored.append((0.0, 0.0))
        anchored.extend(p)
        if not p or (p[-1][0] < 1.0 and p[-1][1] < 1.0):
            anchored.append((1.0, 1.0))

        for (x0, _), (x1, _) in zip(anchored, anchored[1:]):
            if not x1 > x0:
                raise ValueError(
                    f"Curve control points must be strictly increasing in x: {anchored}"
                )

        self.points: Tuple[Tuple[float, float], ...] = tuple(anchored)
        self.c1s, self.c2s, self.c3s = self._coefficients(self.points)

        self._xs = np.array([pt[0] for pt in self.points], dtype=np.float64)
        self._ys = np.array([pt[1] for pt in self.points], dtype=np.float64)
        self._xs.flags.writeable = False
        self._ys.flags.writeable = False

    @staticmethod
    def _coefficients(
        points: Sequence[Tuple[float, float]],
    ) -> Tuple[Tuple[float, ...], Tuple[float, ...], Tuple[float, ...]]:
        if len(points) < 2:
            return (), (), ()

        dxs: List[float] = []
        slopes: List[float] = []
        for (x0, y0), (x1, y1) in zip(points, points[1:]):
            dx = x1 - x0
            dxs.append(dx)
            slopes.append((y1 - y0) / dx)

        # Degree-1: tangents, flattened where the slope changes sign
        c1s = [slopes[0]]
        for i in range(len(dxs) - 1):
            m = slopes[i]
            nxt = slopes[i + 1]
            if m * nxt <= 0.0:
                c1s.append(0.0)
            else:
                dx = dxs[i]
                dx_next = dxs[i + 1]
                common = dx + dx_next
                c1s.append(3.0 * common / ((common + dx_next) / m + (common + dx) / nxt))
        c1s.append(slopes[-1])

        # Degree-2 and degree-3
        c2s: List[float] = []
        c3s: List[float] = []
        for i in range(len(c1s) - 1):
            c1 = c1s[i]
            slope = slopes[i]
            inv_dx = 1.0 / dxs[i]
            common = c1 + c1s[i + 1] - slope - slope
            c2s.append((slope - c1 - common) * inv_dx)
            c3s.append(common * inv_dx * inv_dx)

        return tuple(c1s), tuple(c2s), tuple(c3s)

    def interpolate(self, val: float) -> float:
        points = self.points

        if val >= points[-1][0]:
            return points[-1][1]
        if val <= points[0][0]:
            return points[0][1]

        # Binary search for the segment; exact knots return their own y
        low = 0
        high = len(self.c3s) - 1
        while low <= high:
            mid = (low + high) // 2
            x_here = points[mid][0]
            if x_here < val:
                low = mid + 1
            elif x_here > val:
                high = mid - 1
            else:
                return points[mid][1]
        i = max(0, high)

        diff = val - points[i][0]
        return (
            points[i][1]
            + self.c1s[i] * diff
            + self.c2s[i] * diff * diff
            + self.c3s[i] * diff * diff * diff
        )

    def interpolate_array(self, values: np.ndarray) -> np.ndarray:
        """
        Vectorized interpolate(); agrees with the scalar path for finite input.
        """
        x = np.asarray(values, dtype=np.float64)
        xs, ys = self._xs, self._ys

        if len(self.c3s) == 0:
            return np.full_like(x, ys[0])

        c1 = np.asarray(self.c1s, dtype=np.float64)
        c2 = np.asarray(self.c2s, dtype=np.float64)
        c3 = np.asarray(self.c3s, dtype=np.float64)

        idx = np.clip(np.searchsorted(xs, x, side="right") - 1, 0, len(c3) - 1)
        diff = x - xs[idx]
        res = ys[idx] + c1[idx] * diff + c2[idx] * diff * diff + c3[idx] * diff * diff * diff

        res = np.where(x <= xs[0], ys[0], res)
        res = np.where(x >= xs[-1], ys[-1], res)
        return res

    def __call__(self, val: float) -> float:
        return self.interpolate(val)

    def __repr__(self) -> str:
        return f"CurveFunction(points={list(self.points)})"
