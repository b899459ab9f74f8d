import numpy as np
import pytest
from chomp_planner.utils import interpolation as interp


def test_blend_segment_endpoints_and_shape():
    start = [5.0, -5.0, 2.5]
    end = [6.0, 0.0, 4.5]

    path = interp.blend_segment(start, end, 26)
    assert path.shape == (26, 3)

    assert np.allclose(path[0], start)
    assert np.allclose(path[-1], end)

    diffs = np.diff(path, axis=0)
    assert np.all(diffs >= 0.0)


def test_blend_segment_custom_profile():
    path = interp.blend_segment([0.0], [2.0], 5, lambda tau: tau**2)
    assert np.allclose(path[:, 0], [0.0, 0.125, 0.5, 1.125, 2.0])


def test_blend_segment_linear_has_constant_step():
    path = interp.blend_segment([0.0], [1.0], 11)
    assert np.allclose(np.diff(path[:, 0]), 0.1)


def test_blend_segment_rejects_mismatched_shapes():
    with pytest.raises(ValueError):
        interp.blend_segment([0.0, 1.0], [1.0], 5)
    with pytest.raises(ValueError):
        interp.blend_segment([0.0], [1.0], 1)


@pytest.mark.parametrize("T", [0.5, 1.0, 2.992])
def test_quintic_coefficients_rest_to_rest(T):
    q0 = np.array([0.0, 1.0, -2.0])
    qf = np.array([1.0, 1.0, 3.0])
    coeffs = interp.quintic_coefficients(q0, qf, T)
    assert coeffs.shape == (6, 3)

    ends = np.array([0.0, T])
    pos = interp.evaluate_polynomial(coeffs, ends)
    assert np.allclose(pos[0], q0)
    assert np.allclose(pos[1], qf)
    assert np.allclose(interp.evaluate_polynomial(coeffs, ends, derivative=1), 0.0, atol=1e-9)
    assert np.allclose(interp.evaluate_polynomial(coeffs, ends, derivative=2), 0.0, atol=1e-9)


def test_quintic_coefficients_match_min_jerk_profile():
    T = 2.0
    coeffs = interp.quintic_coefficients(0.0, 1.0, T)
    t = np.linspace(0.0, T, 21)
    tau = t / T
    pos = interp.evaluate_polynomial(coeffs, t)[:, 0]
    assert np.allclose(pos, 10 * tau**3 - 15 * tau**4 + 6 * tau**5)


def test_cubic_coefficients_zero_boundary_velocity():
    T = 1.5
    coeffs = interp.cubic_coefficients([0.0], [2.0], T)
    ends = np.array([0.0, T])
    assert np.allclose(interp.evaluate_polynomial(coeffs, ends)[:, 0], [0.0, 2.0])
    assert np.allclose(interp.evaluate_polynomial(coeffs, ends, derivative=1), 0.0, atol=1e-12)


def test_coefficients_require_positive_duration():
    with pytest.raises(ValueError):
        interp.quintic_coefficients(0.0, 1.0, 0.0)
    with pytest.raises(ValueError):
        interp.cubic_coefficients(0.0, 1.0, -1.0)
    with pytest.raises(ValueError):
        interp.evaluate_polynomial(np.zeros((6, 1)), np.zeros(2), derivative=4)
