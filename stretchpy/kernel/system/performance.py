import functools
import time
from typing import Any, Callable, TypeVar
from typing_extensions import ParamSpec
from stretchpy.kernel.system.logging import get_logger

logger = get_logger("perf")

P = ParamSpec("P")
R = TypeVar("R")


def _find_shape(args: Any, kwargs: Any) -> Any:
    for arg in list(args) + list(kwargs.values()):
        if hasattr(arg, "shape"):
            return getattr(arg, "shape")
    return "N/A"


def time_function(func: Callable[P, R]) -> Callable[P, R]:
    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        start = time.perf_counter()
        result = func(*args, **kwargs)
        duration_ms = (time.perf_counter() - start) * 1000

        logger.debug(
            f"PERF: {func.__name__} took {duration_ms:.3f}ms "
            f"(shape: {_find_shape(args, kwargs)})"
        )
        return result

    return wrapper
