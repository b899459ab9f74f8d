import math

import numpy as np
import pytest
from chomp_planner.trajectory.buffer import TrajectoryBuffer
from chomp_planner.trajectory.derivatives import joint_derivatives
from chomp_planner.trajectory.diff_rules import ACCELERATION, VELOCITY
from chomp_planner.utils.errors import PlanningSceneError, TrajectoryPlanningError


def _seeded(scene, group="planar", duration=1.0, dt=0.1, start=(0.0, 0.0), goal=(1.0, -2.0)):
    buf = TrajectoryBuffer.from_duration(scene, duration, dt, group)
    buf.set_point(0, start)
    buf.set_point(buf.num_points - 1, goal)
    return buf


@pytest.mark.parametrize(
    "duration,dt,expected",
    [(3.0, 0.034, 89), (1.0, 0.1, 11), (0.3, 0.1, 4), (1.0, 0.3, 4), (0.05, 0.05, 2)],
)
def test_from_duration_sizes_buffer(planar_scene, duration, dt, expected):
    buf = TrajectoryBuffer.from_duration(planar_scene, duration, dt, "planar")
    assert buf.num_points == expected
    assert buf.num_joints == 2
    assert buf.start_index == 1
    assert buf.end_index == expected - 2
    assert buf.duration == pytest.approx((expected - 1) * dt)
    assert np.all(buf.points == 0.0)
    assert buf.source_row_map is None


def test_group_resolution(arm_scene):
    buf = TrajectoryBuffer.from_num_points(arm_scene, 5, 0.1, "arm")
    assert buf.joint_names == ("shoulder", "elbow", "wrist")
    with pytest.raises(TrajectoryPlanningError):
        TrajectoryBuffer.from_num_points(arm_scene, 5, 0.1, "empty")
    with pytest.raises(PlanningSceneError):
        TrajectoryBuffer.from_num_points(arm_scene, 5, 0.1, "missing")


def test_construction_preconditions():
    with pytest.raises(TrajectoryPlanningError):
        TrajectoryBuffer(1, 0.1, "g", ["a"])
    with pytest.raises(TrajectoryPlanningError):
        TrajectoryBuffer(5, 0.0, "g", ["a"])
    with pytest.raises(TrajectoryPlanningError):
        TrajectoryBuffer(5, 0.1, "g", ["a"], start_index=3, end_index=1)
    # Empty free region is allowed
    buf = TrajectoryBuffer(2, 0.1, "g", ["a"])
    assert buf.num_free_points == 0


def test_row_and_column_views_share_storage(planar_scene):
    buf = _seeded(planar_scene)
    buf.point(3)[:] = [7.0, 8.0]
    assert buf[3, 0] == 7.0
    assert buf.joint_trajectory(1)[3] == 8.0
    buf[4, 1] = -1.0
    assert buf.points[4, 1] == -1.0
    with pytest.raises(TrajectoryPlanningError):
        buf.set_point(0, [1.0, 2.0, 3.0])


@pytest.mark.parametrize("fill", ["fill_linear", "fill_cubic", "fill_quintic"])
def test_fills_keep_anchor_rows(planar_scene, fill):
    buf = _seeded(planar_scene)
    getattr(buf, fill)()
    assert np.allclose(buf.point(0), [0.0, 0.0])
    assert np.allclose(buf.point(buf.num_points - 1), [1.0, -2.0])


@pytest.mark.parametrize("fill", ["fill_linear", "fill_cubic", "fill_quintic"])
def test_fills_are_strictly_monotonic_between_anchors(planar_scene, fill):
    buf = _seeded(planar_scene)
    getattr(buf, fill)()
    diffs = np.diff(buf.points, axis=0)
    assert np.all(diffs[:, 0] > 0.0)
    assert np.all(diffs[:, 1] < 0.0)


def test_linear_fill_constant_step(planar_scene):
    buf = _seeded(planar_scene)
    buf.fill_linear()
    diffs = np.diff(buf.points, axis=0)
    assert np.allclose(diffs[:, 0], 0.1)
    assert np.allclose(diffs[:, 1], -0.2)


def test_cubic_fill_starts_and_ends_slowly(planar_scene):
    buf = _seeded(planar_scene)
    buf.fill_cubic()
    step = np.abs(np.diff(buf.joint_trajectory(0)))
    assert step[0] < step[len(step) // 2]
    assert step[-1] < step[len(step) // 2]
    # 3τ^2 - 2τ^3 at the midpoint is one half
    assert buf[5, 0] == pytest.approx(0.5)


def test_quintic_fill_matches_min_jerk_profile(planar_scene):
    buf = _seeded(planar_scene)
    buf.fill_quintic()
    tau = np.linspace(0.0, 1.0, buf.num_points)
    expected = 10 * tau**3 - 15 * tau**4 + 6 * tau**5
    assert np.allclose(buf.joint_trajectory(0), expected)
    assert np.allclose(buf.joint_trajectory(1), -2.0 * expected)


def test_quintic_fill_has_zero_boundary_velocity_and_acceleration(planar_scene):
    buf = _seeded(planar_scene, duration=3.0, dt=0.034)
    buf.fill_quintic()
    vel = joint_derivatives(buf, VELOCITY)
    acc = joint_derivatives(buf, ACCELERATION)
    for j in range(buf.num_joints):
        v_peak = np.max(np.abs(vel[:, j]))
        a_peak = np.max(np.abs(acc[:, j]))
        assert abs(vel[0, j]) < 1e-2 * v_peak
        assert abs(vel[-1, j]) < 1e-2 * v_peak
        assert abs(acc[0, j]) < 5e-2 * a_peak
        assert abs(acc[-1, j]) < 5e-2 * a_peak


def test_fill_uses_anchors_around_custom_free_region():
    buf = TrajectoryBuffer(8, 0.1, "g", ["a"], start_index=3, end_index=5)
    buf[2, 0] = 1.0
    buf[6, 0] = 5.0
    buf[0, 0] = -9.0
    buf.fill_linear()
    assert np.allclose(buf.joint_trajectory(0)[2:7], [1.0, 2.0, 3.0, 4.0, 5.0])
    assert buf[0, 0] == -9.0


def test_fill_requires_anchor_rows():
    buf = TrajectoryBuffer(5, 0.1, "g", ["a"], start_index=0, end_index=4)
    with pytest.raises(TrajectoryPlanningError):
        buf.fill_quintic()


def test_load_precomputed_overwrites_and_accepts_transpose(planar_scene):
    buf = _seeded(planar_scene)
    data = np.arange(22, dtype=float).reshape(11, 2)
    buf.load_precomputed(data)
    assert np.array_equal(buf.points, data)
    buf.load_precomputed(data.T * 2)
    assert np.array_equal(buf.points, data * 2)
    with pytest.raises(TrajectoryPlanningError):
        buf.load_precomputed(np.zeros((5, 2)))


def test_padded_copy_adds_stencil_rows(planar_scene):
    buf = _seeded(planar_scene)
    buf.fill_linear()
    padded = TrajectoryBuffer.padded(buf, diff_rule_length=7)

    # 6 rows before and after the free region; source had 1 on each side
    assert padded.start_index == 6
    assert padded.num_points == buf.num_points + 10
    assert padded.end_index == padded.num_points - 1 - 6
    assert padded.num_free_points == buf.num_free_points

    rmap = padded.source_row_map
    assert len(rmap) == padded.num_points
    assert rmap.min() == 0 and rmap.max() == buf.num_points - 1
    assert np.all(np.diff(rmap) >= 0)
    assert np.array_equal(rmap[:7], [0, 0, 0, 0, 0, 0, 1])
    for i, src in enumerate(rmap):
        assert np.array_equal(padded.point(i), buf.point(src))


def test_padded_free_rows_write_back(planar_scene):
    buf = _seeded(planar_scene)
    buf.fill_linear()
    padded = TrajectoryBuffer.padded(buf)
    padded.free_points()[:] += 0.25
    buf.update_from_group(padded)
    assert np.allclose(buf.free_points(), padded.free_points())
    # Anchors untouched
    assert np.allclose(buf.point(0), [0.0, 0.0])
    assert np.allclose(buf.point(buf.num_points - 1), [1.0, -2.0])

    other = TrajectoryBuffer(4, 0.1, "planar", ["j1", "j2"])
    with pytest.raises(TrajectoryPlanningError):
        buf.update_from_group(other)


def test_velocity_of_constant_path_is_zero_everywhere(planar_scene):
    buf = _seeded(planar_scene, start=(0.4, -0.3), goal=(0.4, -0.3))
    buf.fill_quintic()
    vel = joint_derivatives(buf)
    assert vel.shape == buf.points.shape
    assert np.allclose(vel, 0.0, atol=1e-12)


def test_velocity_of_linear_path_in_per_second_units(planar_scene):
    buf = _seeded(planar_scene)
    buf.fill_linear()
    vel = joint_derivatives(buf)
    # interior rows away from the clamped ends see the exact slope
    assert np.allclose(vel[3:-3, 0], 1.0)
    assert np.allclose(vel[3:-3, 1], -2.0)
    raw = joint_derivatives(buf, per_second=False)
    assert np.allclose(raw[3:-3, 0], 0.1)


def test_copy_is_independent(planar_scene):
    buf = _seeded(planar_scene)
    clone = buf.copy()
    clone[0, 0] = math.pi
    assert buf[0, 0] == 0.0


@pytest.mark.parametrize("start,end", [(8, 15), (1, 5)])
def test_derivatives_reject_fixed_regions_longer_than_padding(start, end):
    buf = TrajectoryBuffer(20, 0.1, "g", ["a"], start_index=start, end_index=end)
    with pytest.raises(TrajectoryPlanningError):
        joint_derivatives(buf)


def test_derivatives_with_widest_fixed_regions():
    buf = TrajectoryBuffer(20, 0.1, "g", ["a"], start_index=6, end_index=13)
    buf.points[:, 0] = np.arange(20) * 0.1
    vel = joint_derivatives(buf)
    assert vel.shape == (20, 1)
    assert np.allclose(vel[3:17, 0], 1.0)
