"""Utility functions for pygating."""

from __future__ import annotations

import json
from abc import abstractmethod
from collections.abc import Sequence
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from .. import __version__
from .warnings import WarningCollectorMixin


class ResultBase(BaseModel):
    """Fields shared by every results model: who analyzed, when, and what went wrong along the way."""

    pygating_version: str = Field(
        default=__version__,
        description="The version of pygating used for the analysis.",
    )
    date_of_analysis: datetime = Field(
        default_factory=datetime.now,
        description="When the analysis was performed.",
    )
    warnings: list[dict] = Field(
        default_factory=list,
        description="Warnings raised during the analysis, e.g. log files that could not be read.",
    )


T = TypeVar("T", bound=ResultBase)


class ResultsDataMixin(Generic[T], WarningCollectorMixin):
    """Gives an analysis class ``results_data()`` on top of its own ``_generate_results_data()``."""

    @abstractmethod
    def _generate_results_data(self) -> T:
        pass

    def results_data(self, as_dict: bool = False, as_json: bool = False) -> T | dict | str:
        """Return the results of the analysis as a pydantic model (default), a dict, or a JSON string.

        Parameters
        ----------
        as_dict : bool
            Return a JSON-compatible dictionary.
        as_json : bool
            Return a JSON string. Cannot be combined with ``as_dict``.
        """
        if as_dict and as_json:
            raise ValueError("Cannot return as both dict and JSON. Pick one.")
        data = self._generate_results_data()
        if as_json:
            return data.model_dump_json()
        if as_dict:
            return json.loads(data.model_dump_json())
        return data


def to_datetime(value: str | datetime, formats: Sequence[str]) -> datetime:
    """Convert a date-time string to a datetime, trying each format in turn.
    Datetime instances are returned unchanged.

    Parameters
    ----------
    value : str, datetime
        The value to convert. Surrounding whitespace is ignored.
    formats : sequence of str
        ``strptime`` formats, tried in order; the first that parses wins.

    Raises
    ------
    ValueError
        If no format matches.
    """
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(
        f"'{value}' does not match any of the known date-time formats: {', '.join(formats)}"
    )
