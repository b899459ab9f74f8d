"""
Shared interpolation utilities used to seed trajectory buffers.
"""

from collections.abc import Sequence
from typing import Callable

import numpy as np
from numpy.typing import NDArray

Profile = Callable[[NDArray[np.float64]], NDArray[np.float64]]


def linear_blend(tau: NDArray[np.float64]) -> NDArray[np.float64]:
    """S(τ) = τ"""
    return tau


def blend_segment(
    start: Sequence[float] | NDArray,
    end: Sequence[float] | NDArray,
    num_samples: int,
    profile: Profile = linear_blend,
) -> np.ndarray:
    """
    Sample ``profile`` between two joint vectors, endpoints included.

    Returns: array of shape (num_samples, D)
    """
    start_arr = np.asarray(start, dtype=float)
    end_arr = np.asarray(end, dtype=float)
    if start_arr.shape != end_arr.shape:
        raise ValueError("start and end must have the same shape")
    if num_samples < 2:
        raise ValueError(f"num_samples must be >= 2, got {num_samples}")

    tau = np.linspace(0.0, 1.0, num_samples)
    s = profile(tau).reshape(-1, 1)
    delta = (end_arr - start_arr).reshape(1, -1)
    return start_arr.reshape(1, -1) + s * delta


def cubic_coefficients(q0: NDArray | float, qf: NDArray | float, T: float) -> np.ndarray:
    """
    Cubic coefficients [c0, c1, c2, c3] (ascending powers of t) for a
    rest-to-rest move of duration T. Vectorized over joints: returns (4, D).
    """
    if T <= 0:
        raise ValueError(f"Duration must be positive, got T={T}")
    q0 = np.atleast_1d(np.asarray(q0, dtype=float))
    qf = np.atleast_1d(np.asarray(qf, dtype=float))
    delta = qf - q0
    zeros = np.zeros_like(q0)
    return np.vstack([q0, zeros, 3.0 / T**2 * delta, -2.0 / T**3 * delta])


def quintic_coefficients(q0: NDArray | float, qf: NDArray | float, T: float) -> np.ndarray:
    """
    Minimum-jerk coefficients [c0..c5] (ascending powers of t) for zero
    boundary velocity and acceleration. Vectorized over joints: returns (6, D).

    Closed form of the general quintic with v0 = vf = a0 = af = 0.
    """
    if T <= 0:
        raise ValueError(f"Duration must be positive, got T={T}")
    q0 = np.atleast_1d(np.asarray(q0, dtype=float))
    qf = np.atleast_1d(np.asarray(qf, dtype=float))
    delta = qf - q0
    zeros = np.zeros_like(q0)
    return np.vstack(
        [
            q0,
            zeros,
            zeros,
            10.0 * delta / T**3,
            -15.0 * delta / T**4,
            6.0 * delta / T**5,
        ]
    )


def evaluate_polynomial(coeffs: np.ndarray, t: NDArray[np.float64], derivative: int = 0) -> np.ndarray:
    """
    Evaluate per-joint polynomials at times ``t``.

    Args:
        coeffs: (order+1, D) ascending coefficients, one column per joint
        t: sample times, shape (N,)
        derivative: 0=position, 1=velocity, 2=acceleration, 3=jerk

    Returns: array of shape (N, D)
    """
    if derivative < 0 or derivative > 3:
        raise ValueError(f"Derivative order {derivative} not supported (max is 3)")
    c = np.asarray(coeffs, dtype=float)
    for _ in range(derivative):
        c = c[1:] * np.arange(1, c.shape[0]).reshape(-1, 1)
    t = np.asarray(t, dtype=float)
    # Horner's method over all joints at once
    result = np.zeros((t.shape[0], c.shape[1]))
    for k in range(c.shape[0] - 1, -1, -1):
        result = result * t.reshape(-1, 1) + c[k].reshape(1, -1)
    return result
