import math
import casadi as ca
import numpy as np

SYMBOLIC_TYPES = (ca.SX, ca.MX, ca.DM)

# relative size of the smallest R pivot below which the fit is rank deficient
RANK_TOL = 1e-10


def polyfit(xvals, yvals, order: int) -> np.ndarray:
    '''
    Least-squares fit of a polynomial of the given order.

    Returns coefficients in ascending power, ``len == order + 1``.
    '''
    xvals = np.asarray(xvals, dtype=float).flatten()
    yvals = np.asarray(yvals, dtype=float).flatten()
    if xvals.size == 0 or xvals.size != yvals.size:
        raise ValueError(f"need equal, non-empty point sets, got {xvals.size} x and {yvals.size} y values")
    if not 1 <= order <= xvals.size - 1:
        raise ValueError(f"order must be in [1, {xvals.size - 1}] for {xvals.size} points, got {order}")

    # Vandermonde matrix, column i holds x^i
    A = np.ones((xvals.size, order + 1))
    for i in range(order):
        A[:, i + 1] = A[:, i] * xvals

    Q, R = np.linalg.qr(A)
    diag = np.abs(np.diag(R))
    if diag.min() <= RANK_TOL * diag.max():
        raise ValueError(f"points do not determine a polynomial of order {order}, too few distinct x values")
    return np.linalg.solve(R, Q.T @ yvals)


def _coeff(c):
    # numpy scalars do not mix with CasADi expressions
    return c if isinstance(c, SYMBOLIC_TYPES) else float(c)


def polyeval(coeffs, x):
    '''Evaluate the polynomial at x.'''
    result = 0.0
    for i, c in enumerate(coeffs):
        result += _coeff(c) * x ** i
    return result


def polyeval_diff(coeffs, x):
    '''Analytic first derivative of the polynomial at x.'''
    result = 0.0
    for i in range(1, len(coeffs)):
        result += i * _coeff(coeffs[i]) * x ** (i - 1)
    return result


def atan(x):
    # CasADi types need the CasADi op to stay differentiable
    if isinstance(x, SYMBOLIC_TYPES):
        return ca.atan(x)
    return math.atan(x)


def reference_heading(coeffs, x):
    '''Heading of the reference path at x (psides).'''
    return atan(polyeval_diff(coeffs, x))
