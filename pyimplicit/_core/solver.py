"""
Bounded scalar root finder for the implicit update.

Halley iteration safeguarded by a shrinking bracket: every iterate
stays inside [lower, upper] and the loop stops after ``max_iter``
evaluations whatever happens.
"""

import numpy as np
from dataclasses import dataclass
from typing import Callable, Optional, Tuple
from scipy.optimize import brentq

from ..exceptions import ConfigurationError, NumericDomainError

DEFAULT_MAX_ITER = 50
# Relative step tolerance, half the float64 mantissa
DEFAULT_XTOL = float(np.ldexp(1.0, -26))

_TINY = np.finfo(np.float64).tiny


@dataclass
class SolverResult:
    """Result of one scalar solve."""
    root: float          # Best available root
    iterations: int      # Iterations spent
    converged: bool      # Met tolerance?
    flag: str            # 'converged', 'exact' or 'maxiter'


def _evaluate(fn: Callable, u: float) -> Tuple[float, float, float]:
    """Evaluate (f, f', f'') and reject non-finite values."""
    try:
        with np.errstate(over='raise', invalid='raise', divide='raise'):
            value, first, second = fn(u)
    except (FloatingPointError, OverflowError) as e:
        raise NumericDomainError(
            f"Floating point error evaluating implicit equation at u={u!r}: {e}"
        ) from e
    if not (np.isfinite(value) and np.isfinite(first) and np.isfinite(second)):
        raise NumericDomainError(
            f"Non-finite implicit equation at u={u!r}: "
            f"f={value!r}, f'={first!r}, f''={second!r}"
        )
    return float(value), float(first), float(second)


def _far_is_upper(lower, upper) -> bool:
    return abs(upper) >= abs(lower)


def _halley(fn, lower, upper, guess, max_iter, xtol, increasing) -> SolverResult:
    if increasing is None:
        f_lower = _evaluate(fn, lower)[0]
        if f_lower == 0.0:
            return SolverResult(lower, 0, True, 'exact')
        f_upper = _evaluate(fn, upper)[0]
        if f_upper == 0.0:
            return SolverResult(upper, 0, True, 'exact')
        if (f_lower < 0) == (f_upper < 0):
            raise ValueError(
                f"Root is not bracketed: f({lower})={f_lower}, f({upper})={f_upper}"
            )
        lower_negative = f_lower < 0
    else:
        lower_negative = bool(increasing)
    far_is_upper = _far_is_upper(lower, upper)

    if guess is None or not (lower <= guess <= upper):
        guess = 0.5 * (lower + upper)
    x = float(guess)

    for iteration in range(1, max_iter + 1):
        try:
            f0, f1, f2 = _evaluate(fn, x)
        except NumericDomainError:
            if increasing is None:
                raise
            # Unevaluable points lie beyond the root, on the far side
            f0 = f1 = f2 = None

        delta = None
        if f0 is None:
            if far_is_upper:
                upper = x
            else:
                lower = x
        else:
            if f0 == 0.0:
                return SolverResult(x, iteration, True, 'converged')
            if (f0 < 0) == lower_negative:
                lower = x
            else:
                upper = x
            if f1 != 0.0:
                newton = f0 / f1
                denom = 2.0 * f1 * f1 - f0 * f2
                delta = 2.0 * f0 * f1 / denom if denom != 0.0 else newton
                # Halley pointing away from Newton means f'' dominates
                if delta * newton < 0:
                    delta = newton

        x_new = x - delta if delta is not None else np.nan
        if not (lower < x_new < upper):
            x_new = 0.5 * (lower + upper)

        step = x_new - x
        x = x_new
        if abs(step) <= xtol * max(abs(x), _TINY):
            return SolverResult(x, iteration, True, 'converged')
        if upper - lower <= xtol * max(abs(lower), abs(upper), _TINY):
            return SolverResult(x, iteration, True, 'converged')

    return SolverResult(x, max_iter, False, 'maxiter')


def _brentq(fn, lower, upper, max_iter, xtol, increasing) -> SolverResult:
    if increasing is None:
        def value_only(u):
            return _evaluate(fn, u)[0]
    else:
        # Finite stand-in with the far end's sign; brentq only needs the sign
        far_sign = 1.0 if increasing == _far_is_upper(lower, upper) else -1.0
        stand_in = far_sign * (upper - lower)

        def value_only(u):
            try:
                return _evaluate(fn, u)[0]
            except NumericDomainError:
                return stand_in

    root, info = brentq(
        value_only, lower, upper,
        xtol=_TINY, rtol=max(xtol, 4 * np.finfo(np.float64).eps),
        maxiter=max_iter, full_output=True, disp=False,
    )
    flag = 'converged' if info.converged else 'maxiter'
    return SolverResult(float(root), int(info.iterations), bool(info.converged), flag)


def solve_implicit(
    fn: Callable,
    lower: float,
    upper: float,
    guess: Optional[float] = None,
    max_iter: int = DEFAULT_MAX_ITER,
    xtol: float = DEFAULT_XTOL,
    method: str = 'halley',
    increasing: Optional[bool] = None,
) -> SolverResult:
    """
    Find the root of a scalar equation inside a bracket.

    Parameters
    ----------
    fn : callable
        fn(u) -> (f(u), f'(u), f''(u))
    lower, upper : float
        Bracket with f(lower)·f(upper) <= 0
    guess : float, optional
        Starting point (default: bracket midpoint)
    max_iter : int
        Iteration cap, the only bound on work per solve
    xtol : float
        Relative tolerance on the last step
    method : str
        'halley' (uses f'') or 'brentq' (scipy, value only)
    increasing : bool, optional
        Known orientation of the bracket: True when f(lower) <= 0 <= f(upper),
        False for the reverse. The ends are then not evaluated, and a point
        where fn is non-finite is taken to lie on the side of the bracket
        end farther from zero. fn must be finite at the root.

    Returns
    -------
    result : SolverResult
        Root and status. Hitting ``max_iter`` is reported through
        ``converged=False``, never raised.

    Raises
    ------
    NumericDomainError
        f, f' or f'' is non-finite somewhere along the iteration and
        ``increasing`` is not given
    """
    if int(max_iter) != max_iter or max_iter < 1:
        raise ConfigurationError(f"max_iter must be a positive integer, got {max_iter}")
    if not xtol > 0:
        raise ConfigurationError(f"xtol must be positive, got {xtol}")

    lower, upper = float(lower), float(upper)
    if not (np.isfinite(lower) and np.isfinite(upper)):
        raise NumericDomainError(f"Non-finite bracket [{lower}, {upper}]")
    if lower > upper:
        lower, upper = upper, lower
    if lower == upper:
        return SolverResult(lower, 0, True, 'exact')

    if method == 'halley':
        return _halley(fn, lower, upper, guess, int(max_iter), xtol, increasing)
    elif method == 'brentq':
        return _brentq(fn, lower, upper, int(max_iter), xtol, increasing)
    else:
        raise ConfigurationError(
            f"Unknown solver method: '{method}'\n"
            f"Valid options: 'halley', 'brentq'"
        )


__all__ = [
    "DEFAULT_MAX_ITER",
    "DEFAULT_XTOL",
    "SolverResult",
    "solve_implicit",
]
