"""Alignment of irregular signals onto daily buckets.

Each variable becomes a pandas Series indexed by every calendar day of the
window. Days without samples hold NaN, which the rest of the engine treats as
"absent": nothing is zero-filled or interpolated.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from ..config import config
from ..errors import InsufficientDataError
from ..signals import AggregationPolicy, Signal, resolve_policy


@dataclass
class AlignedSeries:
    """One variable resampled to one value (or absence) per day."""
    variable: str
    policy: AggregationPolicy
    values: pd.Series  # DatetimeIndex at daily frequency, NaN = absent

    @property
    def start(self) -> date:
        return self.values.index[0].date()

    @property
    def end(self) -> date:
        return self.values.index[-1].date()

    @property
    def observed_days(self) -> int:
        return int(self.values.notna().sum())

    def get(self, day) -> Optional[float]:
        """Value for a day, or None when the day is absent or outside the window."""
        key = pd.Timestamp(day).normalize()
        if key not in self.values.index:
            return None
        value = self.values.loc[key]
        return None if pd.isna(value) else float(value)

    def observed(self) -> pd.Series:
        """Only the days that carry a value."""
        return self.values.dropna()

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            ts.date().isoformat(): (None if pd.isna(v) else float(v))
            for ts, v in self.values.items()
        }


def _day_index(start, end) -> pd.DatetimeIndex:
    start_day = pd.Timestamp(start).normalize()
    end_day = pd.Timestamp(end).normalize()
    if end_day < start_day:
        raise ValueError(f"Window end {end_day.date()} is before start {start_day.date()}")
    return pd.date_range(start=start_day, end=end_day, freq="D")


class SeriesAligner:
    """Buckets signals per variable and day using declared reduction policies.

    Args:
        policies: Overrides for the per-variable policy registry. Variables
            with neither an override nor a declared policy are skipped.
        min_paired: Minimum number of days on which both series of a pair
            must have values.
    """

    def __init__(
        self,
        policies: Optional[Mapping[str, AggregationPolicy]] = None,
        min_paired: Optional[int] = None,
    ):
        self.policies = dict(policies or {})
        self.min_paired = min_paired if min_paired is not None else config.MIN_PAIRED_OBSERVATIONS
        self.logger = logging.getLogger(__name__)

    def policy_for(self, variable: str) -> Optional[AggregationPolicy]:
        return self.policies.get(variable) or resolve_policy(variable)

    def align(
        self,
        signals: Iterable[Signal],
        start: datetime,
        end: datetime,
    ) -> Dict[str, AlignedSeries]:
        """Produce one AlignedSeries per variable present in ``signals``."""
        index = _day_index(start, end)
        frame = pd.DataFrame(
            [(s.timestamp, s.variable, s.value) for s in signals],
            columns=["timestamp", "variable", "value"],
        )
        if frame.empty:
            return {}

        frame["timestamp"] = pd.to_datetime(frame["timestamp"])
        frame["day"] = frame["timestamp"].dt.normalize()
        frame = frame[(frame["day"] >= index[0]) & (frame["day"] <= index[-1])]

        aligned = {}
        for variable, group in frame.groupby("variable", sort=True):
            policy = self.policy_for(variable)
            if policy is None:
                self.logger.warning(f"No aggregation policy declared for '{variable}', skipping")
                continue
            daily = self._reduce(group, policy)
            aligned[variable] = AlignedSeries(
                variable=variable,
                policy=policy,
                values=daily.reindex(index).astype(float),
            )
        return aligned

    @staticmethod
    def _reduce(group: pd.DataFrame, policy: AggregationPolicy) -> pd.Series:
        by_day = group.sort_values("timestamp", kind="mergesort").groupby("day")["value"]
        if policy is AggregationPolicy.MEAN:
            return by_day.mean()
        if policy is AggregationPolicy.SUM:
            return by_day.sum()
        return by_day.last()

    def paired(
        self,
        series_a: AlignedSeries,
        series_b: AlignedSeries,
        lag_days: int = 0,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Values of both series on the days where both are present.

        With ``lag_days=k`` the value of ``series_a`` on day d is paired with
        the value of ``series_b`` on day d + k.

        Raises:
            InsufficientDataError: fewer than ``min_paired`` such days.
        """
        if lag_days < 0:
            raise ValueError("lag_days cannot be negative")
        b_values = series_b.values
        if lag_days:
            b_values = b_values.shift(-lag_days)
        frame = pd.concat([series_a.values, b_values], axis=1, keys=["a", "b"]).dropna()
        if len(frame) < self.min_paired:
            raise InsufficientDataError(
                f"{series_a.variable} vs {series_b.variable} (lag {lag_days}): "
                f"{len(frame)} paired days, need {self.min_paired}",
                available=len(frame),
                required=self.min_paired,
            )
        return frame["a"].to_numpy(dtype=float), frame["b"].to_numpy(dtype=float)

    def require_observations(self, series: AlignedSeries) -> Tuple[np.ndarray, np.ndarray]:
        """Day offsets from the window start and values for a single series."""
        observed = series.observed()
        if len(observed) < self.min_paired:
            raise InsufficientDataError(
                f"{series.variable}: {len(observed)} observed days, need {self.min_paired}",
                available=len(observed),
                required=self.min_paired,
            )
        offsets = (observed.index - series.values.index[0]).days.to_numpy(dtype=float)
        return offsets, observed.to_numpy(dtype=float)

