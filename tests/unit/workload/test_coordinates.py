# pylint: disable=missing-docstring
import io
import math
import random

import pytest

from tests.testdata.metadata import path_to_coordinates
from topicq.workload.coordinates import (
    CoordinatesHandler,
    CoordinateTask,
    Point,
    closest_point,
    format_result,
    populate_coordinates,
    read_tasks,
)
from topicq.workload.exceptions import InputFormatError
from topicq.workload.sink import ResultWriter


def _task(point, *candidates):
    return CoordinateTask(Point(*point), [Point(*candidate) for candidate in candidates])


class TestPoint:
    def test_coordinates_are_floats(self):
        point = Point("1", 2)
        assert point.x == 1.0 and isinstance(point.x, float)
        assert point.y == 2.0 and isinstance(point.y, float)

    def test_str(self):
        assert str(Point(1.5, -2)) == "X: 1.5 Y: -2.0"

    @pytest.mark.parametrize(
        "first, second, expected",
        [((0, 0), (3, 4), 5.0), ((1, 1), (1, 1), 0.0), ((-1, -1), (2, 3), 5.0)],
    )
    def test_distance_to(self, first, second, expected):
        assert Point(*first).distance_to(Point(*second)) == expected
        assert Point(*second).distance_to(Point(*first)) == expected

    def test_distance_is_root_of_summed_squares(self):
        rng = random.Random(7)
        for _ in range(200):
            first = Point(rng.random() * 100, rng.random() * 100)
            second = Point(rng.random() * 100, rng.random() * 100)
            delta_x, delta_y = first.x - second.x, first.y - second.y
            assert first.distance_to(second) == math.sqrt(delta_x * delta_x + delta_y * delta_y)


class TestCoordinateTask:
    def test_candidates_are_required(self):
        with pytest.raises(ValueError):
            CoordinateTask(Point(0, 0), [])

    def test_candidates_must_be_points(self):
        with pytest.raises(TypeError):
            CoordinateTask(Point(0, 0), [(1, 1)])


class TestClosestPoint:
    def test_returns_closest_candidate_and_distance(self):
        point, distance = closest_point(_task((0, 0), (3, 4), (1, 1), (-2, 0.5)))
        assert point == Point(1, 1)
        assert distance == pytest.approx(2**0.5)

    def test_first_candidate_wins_ties(self):
        point, distance = closest_point(_task((0, 0), (0, 2), (2, 0), (0, -2)))
        assert point == Point(0, 2)
        assert distance == 2.0

    def test_matches_brute_force_minimum(self):
        rng = random.Random(4)
        for _ in range(20):
            points = [(rng.random() * 100, rng.random() * 100) for _ in range(30)]
            task = _task(*points)
            _, distance = closest_point(task)
            assert distance == min(task.point.distance_to(c) for c in task.candidates)

    def test_format_result(self):
        task = _task((0, 0), (3, 4))
        assert (
            format_result(task, Point(3, 4), 5.0)
            == "Closest point to X: 0.0 Y: 0.0 is X: 3.0 Y: 4.0 with distance 5.0"
        )


class TestReadTasks:
    def test_reads_test_data(self):
        with open(path_to_coordinates, encoding="utf-8") as stream:
            tasks = list(read_tasks(stream, 3))
        assert [task.point for task in tasks] == [Point(0, 0), Point(10, 10), Point(50.5, 50.5)]
        assert all(len(task.candidates) == 3 for task in tasks)

    def test_incomplete_block_ends_input(self):
        lines = ["0, 0", "1, 1", "", "5, 5"]
        assert len(list(read_tasks(lines, 1))) == 1

    def test_missing_coordinate_ends_input(self):
        lines = ["0, 0", "1, 1", "", "5, 5", "6,", "", "7, 7", "8, 8"]
        assert [task.point for task in read_tasks(lines, 1)] == [Point(0, 0)]

    def test_separator_line_is_skipped_regardless_of_content(self):
        lines = ["0, 0", "1, 1", "ignored", "5, 5", "6, 6"]
        assert [task.point for task in read_tasks(lines, 1)] == [Point(0, 0), Point(5, 5)]

    def test_non_numeric_coordinate_raises(self):
        with pytest.raises(InputFormatError, match="Invalid input on line 2: 'a, 1'"):
            list(read_tasks(["0, 0", "a, 1"], 1))

    def test_windows_line_endings(self):
        tasks = list(read_tasks(io.StringIO("0, 0\r\n1, 1\r\n\r\n"), 1))
        assert tasks[0].candidates == (Point(1, 1),)


class TestCoordinatesHandler:
    def test_writes_one_result_and_blank_line(self):
        stream = io.StringIO()
        handler = CoordinatesHandler(ResultWriter(stream))
        handler(_task((10, 10), (10, 13), (9, 10)))
        assert stream.getvalue() == (
            "Closest point to X: 10.0 Y: 10.0 is X: 9.0 Y: 10.0 with distance 1.0\n\n"
        )


class TestPopulateCoordinates:
    def test_generated_file_can_be_read(self, tmp_path):
        path = populate_coordinates(tmp_path / "in" / "coordinates.txt", 5, 4, seed=1)
        with path.open(encoding="utf-8") as stream:
            tasks = list(read_tasks(stream, 4))
        assert len(tasks) == 5
        for task in tasks:
            assert len(task.candidates) == 4
            for point in (task.point, *task.candidates):
                assert 0 <= point.x < 100 and 0 <= point.y < 100

    def test_seed_makes_output_reproducible(self, tmp_path):
        first = populate_coordinates(tmp_path / "first.txt", 3, 2, seed=42)
        second = populate_coordinates(tmp_path / "second.txt", 3, 2, seed=42)
        assert first.read_text(encoding="utf-8") == second.read_text(encoding="utf-8")
