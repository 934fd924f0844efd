# pylint: disable=logging-fstring-interpolation
"""Nearest point lookup workload.

The input consists of blocks separated by a single empty line. Each block has
:code:`points_per_task + 1` lines of the form :code:`<x>, <y>`. The first point
of a block is the query point, the remaining ones are the candidates.

..  code-block:: text

    12.5, 80.25
    3.0, 4.0
    70.1, 9.9

    ...

For every block one result is written:

..  code-block:: text

    Closest point to X: 12.5 Y: 80.25 is X: 3.0 Y: 4.0 with distance 76.82...
"""

import logging
import math
import random
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple, Union

from attrs import define, field, validators

from topicq.util.defaults import DEFAULT_COORDINATE_TASK_COUNT, DEFAULT_POINTS_PER_TASK
from topicq.workload.exceptions import InputFormatError
from topicq.workload.sink import ResultWriter

logger = logging.getLogger("Coordinates")


@define(frozen=True)
class Point:
    """A point in a two-dimensional coordinate system."""

    x: float = field(converter=float)
    y: float = field(converter=float)

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to other."""
        delta_x = self.x - other.x
        delta_y = self.y - other.y
        return math.sqrt(delta_x * delta_x + delta_y * delta_y)

    def __str__(self) -> str:
        return f"X: {self.x} Y: {self.y}"


@define(frozen=True)
class CoordinateTask:
    """A query point and the candidates to search the closest one in."""

    point: Point = field(validator=validators.instance_of(Point))
    candidates: Tuple[Point, ...] = field(
        converter=tuple,
        validator=[
            validators.deep_iterable(member_validator=validators.instance_of(Point)),
            validators.min_len(1),
        ],
    )


def _parse_point(line_number: int, line: str) -> Optional[Point]:
    parts = line.split(",")
    if len(parts) < 2 or not parts[0].strip() or not parts[1].strip():
        return None
    try:
        return Point(parts[0].strip(), parts[1].strip())
    except ValueError as error:
        raise InputFormatError(line_number, line, str(error)) from error


def read_tasks(
    lines: Iterable[str], points_per_task: int = DEFAULT_POINTS_PER_TASK
) -> Iterator[CoordinateTask]:
    """Parse coordinate tasks from lines.

    Reading ends at the first incomplete block or at a line with a missing
    coordinate. A line that has both coordinates but is not numeric raises
    :code:`InputFormatError`.
    """
    numbered = enumerate((line.rstrip("\r\n") for line in lines), start=1)
    while True:
        points = []
        for _ in range(points_per_task + 1):
            entry = next(numbered, None)
            if entry is None:
                return
            point = _parse_point(*entry)
            if point is None:
                logger.debug(f"Stopped reading coordinates on line {entry[0]}")
                return
            points.append(point)
        yield CoordinateTask(points[0], points[1:])
        next(numbered, None)  # block separator


def closest_point(task: CoordinateTask) -> Tuple[Point, float]:
    """Return the candidate closest to the query point and its distance.

    The first of several equally close candidates wins.
    """
    best = task.candidates[0]
    best_distance = task.point.distance_to(best)
    for candidate in task.candidates[1:]:
        distance = task.point.distance_to(candidate)
        if distance < best_distance:
            best, best_distance = candidate, distance
    return best, best_distance


def format_result(task: CoordinateTask, point: Point, distance: float) -> str:
    """Render the result line of a task."""
    return f"Closest point to {task.point} is {point} with distance {distance}"


class CoordinatesHandler:
    """Consumer handler writing the closest point of every task to a sink."""

    def __init__(self, sink: ResultWriter) -> None:
        self._sink = sink

    def __call__(self, task: CoordinateTask) -> None:
        point, distance = closest_point(task)
        result = format_result(task, point, distance)
        logger.debug(f"Writing result: {result}")
        self._sink.write_block([result])


def populate_coordinates(
    path: Union[str, Path],
    task_count: int = DEFAULT_COORDINATE_TASK_COUNT,
    points_per_task: int = DEFAULT_POINTS_PER_TASK,
    seed: Optional[int] = None,
) -> Path:
    """Write an input file with random coordinates in the range [0, 100)."""
    rng = random.Random(seed)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as stream:
        for _ in range(task_count):
            for _ in range(points_per_task + 1):
                stream.write(f"{rng.random() * 100.0}, {rng.random() * 100.0}\n")
            stream.write("\n")
    logger.info(f"Wrote {task_count} coordinate tasks to '{path}'")
    return path
