import numpy as np
import pytest
from chomp_planner.protocol.types import RobotState
from chomp_planner.trajectory.buffer import TrajectoryBuffer


def _states(values, names=("j1", "j2")):
    return [RobotState(names, [v, -v]) for v in values]


def test_repeat_mapping_for_longer_buffer():
    rows = TrajectoryBuffer.resample_indices(10, 3)
    assert rows.tolist() == [0, 0, 0, 0, 1, 1, 1, 2, 2, 2]


def test_decimation_mapping_for_shorter_buffer():
    rows = TrajectoryBuffer.resample_indices(3, 10)
    assert rows.tolist() == [0, 3, 6]
    assert np.all(np.diff(rows) >= 0)
    assert rows.min() >= 0 and rows.max() <= 9


@pytest.mark.parametrize("n,m", [(89, 2), (89, 7), (89, 89), (11, 4), (5, 40), (2, 3)])
def test_mapping_is_ordered_and_complete(n, m):
    rows = TrajectoryBuffer.resample_indices(n, m)
    assert len(rows) == n
    assert rows[0] == 0
    assert np.all(np.diff(rows) >= 0)
    assert rows.max() <= m - 1
    if n >= m:
        # every input row appears, counts differ by at most one
        counts = np.bincount(rows, minlength=m)
        assert counts.min() >= 1
        assert counts.max() - counts.min() <= 1


def test_resample_from_states_copies_rows_without_blending(planar_scene):
    buf = TrajectoryBuffer.from_num_points(planar_scene, 10, 0.1, "planar")
    ok = buf.resample_from(_states([0.0, 1.0, 2.0]))
    assert ok
    assert buf.joint_trajectory(0).tolist() == [0.0, 0.0, 0.0, 0.0, 1.0, 1.0, 1.0, 2.0, 2.0, 2.0]
    assert np.array_equal(buf.joint_trajectory(1), -buf.joint_trajectory(0))


def test_resample_reads_joints_by_name(arm_scene):
    buf = TrajectoryBuffer.from_num_points(arm_scene, 4, 0.1, "wrist")
    names = ("shoulder", "elbow", "wrist")
    states = [RobotState(names, [9.0, 9.0, w]) for w in (0.1, 0.2)]
    assert buf.resample_from(states)
    assert buf.joint_trajectory(0).tolist() == [0.1, 0.1, 0.2, 0.2]


def test_resample_decimates_long_input(planar_scene):
    buf = TrajectoryBuffer.from_num_points(planar_scene, 3, 0.1, "planar")
    assert buf.resample_from(_states(np.arange(10, dtype=float)))
    assert buf.joint_trajectory(0).tolist() == [0.0, 3.0, 6.0]


@pytest.mark.parametrize("count", [0, 1])
def test_resample_rejects_short_input_without_mutation(planar_scene, count):
    buf = TrajectoryBuffer.from_num_points(planar_scene, 5, 0.1, "planar")
    buf.points[:] = 7.0
    before = buf.points.copy()
    assert buf.resample_from(_states([1.0] * count)) is False
    assert np.array_equal(buf.points, before)
