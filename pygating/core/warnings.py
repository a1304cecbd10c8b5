"""Keep the warnings raised while analyzing logs (e.g. skipped files) so they can be reported with the results."""
import warnings
from functools import wraps


class WarningCollectorMixin:
    """Holds the warnings raised by the most recent analysis of the instance."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._captured_warnings: list[dict] = []

    def get_captured_warnings(self) -> list[dict]:
        """The warnings of the last analysis as ``{'message': ..., 'category': ...}`` dicts."""
        return list(self._captured_warnings)

    def clear_captured_warnings(self) -> None:
        self._captured_warnings = []


def capture_warnings(method):
    """Decorate an analysis method so the warnings it raises become the instance's captured warnings.

    Previously captured warnings are discarded when the method starts. If the method raises,
    nothing is captured. Either way the warnings are still shown on the console.
    """

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        self.clear_captured_warnings()
        try:
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always")
                result = method(self, *args, **kwargs)
        finally:
            for warning in caught:
                warnings.showwarning(
                    warning.message, warning.category, warning.filename, warning.lineno
                )
        self._captured_warnings = [
            {"message": str(w.message), "category": w.category.__name__} for w in caught
        ]
        return result

    return wrapper
