"""Heuristic print-time estimator for 3D print orders."""

from __future__ import annotations

import re
from typing import List, Optional

from logging_config import get_logger


class PrintTimeEstimator:
    """Turns a free-text dimension string into an estimated print duration.

    Dimensions are expected as ``"<L>x<W>x<H>"`` with an optional unit
    suffix (``"10x5x2cm"``, ``"10 x 5 x 2"``). Parsing is permissive: the
    first three numbers found are used and everything else (units,
    separators, stray words) is ignored. Missing axes count as 1.

    Formula: hours = max(MIN_HOURS, L x W x H / VOLUME_PER_HOUR) x max(1, quantity)
    """

    # Lower bound for any estimate, per item and overall
    MIN_HOURS = 0.1

    # 1000 cubic units of bounding box ~ one hour of printing
    VOLUME_PER_HOUR = 1000.0

    # Only the first three magnitudes (length, width, height) are used
    MAX_AXES = 3

    _NUMBER = re.compile(r"\d+(?:\.\d+)?|\.\d+")

    logger = get_logger(__name__)

    @classmethod
    def parse_dimensions(cls, dimensions: Optional[str]) -> List[float]:
        """Extract up to three magnitudes from the dimension string.

        Returns an empty list when nothing usable is found.
        """
        if not dimensions:
            return []
        values = []
        for token in cls._NUMBER.findall(dimensions)[: cls.MAX_AXES]:
            try:
                values.append(float(token))
            except ValueError:
                continue
        return values

    @classmethod
    def estimate_hours(cls, dimensions: Optional[str], quantity: int) -> float:
        """Estimate total print hours for ``quantity`` items.

        Never returns less than MIN_HOURS. Unparseable or degenerate
        dimensions (empty, no digits, any axis of zero) fall back to the
        floor instead of raising.
        """
        axes = cls.parse_dimensions(dimensions)
        if not axes or any(value <= 0 for value in axes):
            cls.logger.debug(f"Unusable dimensions {dimensions!r}, using floor estimate")
            return cls.MIN_HOURS

        volume = 1.0
        for value in axes:
            volume *= value

        per_item = max(cls.MIN_HOURS, volume / cls.VOLUME_PER_HOUR)
        return per_item * max(1, quantity)
