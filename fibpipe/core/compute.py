"""
The deterministic function computed by workers.

fib(0) = fib(1) = 1, fib(n) = fib(n - 1) + fib(n - 2) for n >= 2.
"""

from typing import Callable, Dict

ComputeFunc = Callable[[int], int]


def fib(index: int) -> int:
    """Iterative evaluation of the recurrence, linear in ``index``."""
    if index < 0:
        raise ValueError(f"index must be non-negative, got {index}")

    previous, current = 1, 1
    for _ in range(index - 1):
        previous, current = current, previous + current
    return current


def fib_recursive(index: int) -> int:
    """Naive recursion. Exponential in ``index``; kept for parity checks."""
    if index < 0:
        raise ValueError(f"index must be non-negative, got {index}")
    if index < 2:
        return 1
    return fib_recursive(index - 1) + fib_recursive(index - 2)


COMPUTE_MODES: Dict[str, ComputeFunc] = {
    "iterative": fib,
    "recursive": fib_recursive,
}


def get_compute(mode: str = "iterative") -> ComputeFunc:
    """Resolve a compute mode name to its function."""
    try:
        return COMPUTE_MODES[mode.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown compute mode '{mode}', expected one of {sorted(COMPUTE_MODES)}"
        ) from None
