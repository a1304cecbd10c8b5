from __future__ import annotations

import functools
import inspect
from typing import Callable


def validate(**validators: Callable) -> Callable:
    """Check arguments before the decorated function runs.

    Each keyword names an argument and the check to run on it; the check raises
    (usually a ``ValueError``) if the value is not acceptable. Arguments left at
    their default are not checked.

    @validate(threshold=is_threshold)
    def duty_cycle(self, threshold): ...
    """

    def decorator(func):
        sig = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for name, value in sig.bind(*args, **kwargs).arguments.items():
                if name in validators:
                    validators[name](value)
            return func(*args, **kwargs)

        return wrapper

    return decorator
