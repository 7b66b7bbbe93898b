"""Incremental Delaunay triangulation over a rectangular domain (Bowyer-Watson)."""
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from lowpoly.types import Point, InvalidInputError, DegenerateGeometryError

logger = logging.getLogger(__name__)

# Below this |2 * cross| the circumcenter denominator is treated as zero
DEGENERATE_EPSILON = 1e-9

# How often insert_all() calls its checkpoint callback
CHECKPOINT_INTERVAL = 256


@dataclass(frozen=True, eq=False)
class Edge:
    """Undirected segment between two points."""
    p0: Point
    p1: Point

    def __eq__(self, other):
        if not isinstance(other, Edge):
            return NotImplemented
        return (
            (self.p0 == other.p0 and self.p1 == other.p1)
            or (self.p0 == other.p1 and self.p1 == other.p0)
        )

    __hash__ = None


@dataclass(frozen=True)
class Circle:
    """Circumscribed circle stored as center and squared radius."""
    x: float
    y: float
    radius_sq: float

    def contains(self, point: Point) -> bool:
        """True if the point lies strictly inside the circle."""
        dx = self.x - point.x
        dy = self.y - point.y
        return dx * dx + dy * dy < self.radius_sq


def circumcircle(p0: Point, p1: Point, p2: Point) -> Circle:
    """
    Circle through three points, from the perpendicular bisector intersection.

    Raises:
        DegenerateGeometryError: If the points are (nearly) collinear
    """
    ax = p1.x - p0.x
    ay = p1.y - p0.y
    bx = p2.x - p0.x
    by = p2.y - p0.y

    denominator = 2 * (ax * by - ay * bx)
    if abs(denominator) < DEGENERATE_EPSILON:
        raise DegenerateGeometryError(
            f"Collinear triangle ({p0.x}, {p0.y}), ({p1.x}, {p1.y}), ({p2.x}, {p2.y})"
        )

    t = p1.x * p1.x - p0.x * p0.x + p1.y * p1.y - p0.y * p0.y
    u = p2.x * p2.x - p0.x * p0.x + p2.y * p2.y - p0.y * p0.y

    s = 1 / denominator
    cx = ((p2.y - p0.y) * t + (p0.y - p1.y) * u) * s
    cy = ((p0.x - p2.x) * t + (p1.x - p0.x) * u) * s

    dx = p0.x - cx
    dy = p0.y - cy
    return Circle(cx, cy, dx * dx + dy * dy)


@dataclass(frozen=True, eq=False)
class Triangle:
    """Triangle with cyclic edges and a precomputed circumcircle."""
    p0: Point
    p1: Point
    p2: Point
    edges: Tuple[Edge, Edge, Edge] = field(init=False, repr=False)
    circle: Circle = field(init=False, repr=False)

    def __post_init__(self):
        object.__setattr__(
            self, 'edges',
            (Edge(self.p0, self.p1), Edge(self.p1, self.p2), Edge(self.p2, self.p0))
        )
        object.__setattr__(self, 'circle', circumcircle(self.p0, self.p1, self.p2))

    @property
    def nodes(self) -> Tuple[Point, Point, Point]:
        return (self.p0, self.p1, self.p2)

    @property
    def area(self) -> float:
        """Unsigned area."""
        cross = (
            (self.p1.x - self.p0.x) * (self.p2.y - self.p0.y)
            - (self.p1.y - self.p0.y) * (self.p2.x - self.p0.x)
        )
        return abs(cross) / 2

    @property
    def centroid(self) -> Tuple[float, float]:
        return (
            (self.p0.x + self.p1.x + self.p2.x) / 3,
            (self.p0.y + self.p1.y + self.p2.y) / 3,
        )

    def has_vertex(self, point: Point) -> bool:
        return point == self.p0 or point == self.p1 or point == self.p2


def boundary_edges(triangles: Iterable[Triangle]) -> List[Edge]:
    """
    Outline of a union of triangles.

    Every edge is toggled in or out of the result, so an edge shared by two
    triangles cancels and only the outer polygon remains.
    """
    polygon: List[Edge] = []
    for triangle in triangles:
        for edge in triangle.edges:
            for i, existing in enumerate(polygon):
                if edge == existing:
                    del polygon[i]
                    break
            else:
                polygon.append(edge)
    return polygon


class Triangulation:
    """Delaunay triangulation of points inserted into [0, width] x [0, height]."""

    def __init__(self, width: float, height: float):
        if width <= 0 or height <= 0:
            raise InvalidInputError(
                f"Triangulation domain must have positive area, got {width}x{height}"
            )
        self.width = width
        self.height = height
        self.clear()

    def clear(self) -> "Triangulation":
        """Reset to the two triangles splitting the rectangle along its diagonal."""
        p0 = Point(0, 0)
        p1 = Point(self.width, 0)
        p2 = Point(self.width, self.height)
        p3 = Point(0, self.height)

        self._vertices: List[Point] = [p0, p1, p2, p3]
        self._triangles: List[Triangle] = [
            Triangle(p0, p1, p2),
            Triangle(p0, p2, p3),
        ]
        self._centers = np.array(
            [[t.circle.x, t.circle.y] for t in self._triangles], dtype=np.float64
        )
        self._radii_sq = np.array(
            [t.circle.radius_sq for t in self._triangles], dtype=np.float64
        )
        return self

    def __len__(self) -> int:
        return len(self._triangles)

    def in_domain(self, point: Point) -> bool:
        return 0 <= point.x <= self.width and 0 <= point.y <= self.height

    def violated_mask(self, point: Point) -> np.ndarray:
        """Boolean mask of triangles whose circumcircle strictly contains the point."""
        dx = self._centers[:, 0] - point.x
        dy = self._centers[:, 1] - point.y
        return dx * dx + dy * dy < self._radii_sq

    def insert(self, point: Point) -> bool:
        """
        Insert one point with a Bowyer-Watson step.

        The insertion is rejected, leaving the mesh untouched, when the point
        falls outside the domain, coincides with an existing vertex, or would
        create a collinear triangle.

        Returns:
            True if the point was inserted
        """
        if not self.in_domain(point):
            logger.debug(f"Skipping ({point.x}, {point.y}): outside the domain")
            return False

        mask = self.violated_mask(point)
        if not mask.any():
            logger.debug(f"Skipping ({point.x}, {point.y}): no circumcircle contains it")
            return False

        violated = [t for t, bad in zip(self._triangles, mask) if bad]
        if any(t.has_vertex(point) for t in violated):
            logger.debug(f"Skipping ({point.x}, {point.y}): duplicate vertex")
            return False

        try:
            created = [Triangle(edge.p0, edge.p1, point) for edge in boundary_edges(violated)]
        except DegenerateGeometryError as e:
            logger.debug(f"Skipping ({point.x}, {point.y}): {e}")
            return False

        # The new fan must cover exactly the cavity it replaces
        removed_area = sum(t.area for t in violated)
        created_area = sum(t.area for t in created)
        if not math.isclose(removed_area, created_area, rel_tol=1e-9, abs_tol=1e-9):
            logger.debug(
                f"Skipping ({point.x}, {point.y}): cavity area {removed_area} "
                f"!= fan area {created_area}"
            )
            return False

        keep = ~mask
        self._triangles = [t for t, kept in zip(self._triangles, keep) if kept] + created
        self._centers = np.concatenate([
            self._centers[keep],
            np.array([[t.circle.x, t.circle.y] for t in created], dtype=np.float64),
        ])
        self._radii_sq = np.concatenate([
            self._radii_sq[keep],
            np.array([t.circle.radius_sq for t in created], dtype=np.float64),
        ])
        self._vertices.append(point)
        return True

    def insert_all(
        self,
        points: Iterable[Union[Point, Sequence[float]]],
        checkpoint: Optional[Callable[[], None]] = None
    ) -> int:
        """
        Insert points in order.

        Args:
            points: Points or (x, y) pairs
            checkpoint: Called every CHECKPOINT_INTERVAL insertions; may raise
                to abort the run

        Returns:
            Number of points actually inserted
        """
        inserted = 0
        attempted = 0
        for attempted, point in enumerate(points, start=1):
            if not isinstance(point, Point):
                point = Point(float(point[0]), float(point[1]))
            if self.insert(point):
                inserted += 1
            if checkpoint is not None and attempted % CHECKPOINT_INTERVAL == 0:
                checkpoint()

        if inserted < attempted:
            logger.info(f"Skipped {attempted - inserted} of {attempted} points during triangulation")
        return inserted

    def triangles(self) -> List[Triangle]:
        """Snapshot of the current triangles in insertion-derived order."""
        return list(self._triangles)

    def vertices(self) -> List[Point]:
        """Domain corners followed by inserted points, in insertion order."""
        return list(self._vertices)

    @property
    def area(self) -> float:
        return sum(t.area for t in self._triangles)
