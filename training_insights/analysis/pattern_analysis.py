"""Pattern analysis runs: store -> aligner -> correlation engine -> synthesizer -> store."""

import logging
import uuid
from datetime import datetime, time, timedelta
from itertools import combinations
from typing import Dict, List, Optional, Tuple

from ..config import config
from ..db import Database, SignalStore
from ..domain import PatternAnalysis
from ..errors import AnalysisFailedError, InvalidEntryError, PersistenceError
from .correlation_engine import CorrelationEngine
from .insight_synthesizer import InsightSynthesizer
from .series_aligner import AlignedSeries, SeriesAligner


class PatternAnalysisService:
    """Runs one batch analysis per call for a single user.

    Holds no state between runs. Every run reads a bounded window, computes
    results in memory and appends them as new rows in one transaction;
    earlier runs are left untouched.
    """

    def __init__(
        self,
        store: Optional[SignalStore] = None,
        db: Optional[Database] = None,
        aligner: Optional[SeriesAligner] = None,
        engine: Optional[CorrelationEngine] = None,
        synthesizer: Optional[InsightSynthesizer] = None,
        window_days: Optional[int] = None,
    ):
        self.store = store or SignalStore(db)
        self.aligner = aligner or SeriesAligner()
        self.engine = engine or CorrelationEngine(self.aligner)
        self.synthesizer = synthesizer or InsightSynthesizer()
        self.window_days = window_days or config.ANALYSIS_WINDOW_DAYS
        self.logger = logging.getLogger(__name__)

    def _pairs(self, aligned: Dict[str, AlignedSeries]) -> List[Tuple[str, str]]:
        if config.ANALYZE_ALL_PAIRS:
            return list(combinations(sorted(aligned), 2))
        return config.get_analysis_pairs()

    def window_bounds(self, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
        """``(start, end)`` of the analysis window ending at ``now``.

        The start is floored to midnight so the first daily bucket holds the
        whole day's samples.
        """
        window_end = now or datetime.utcnow()
        first_day = (window_end - timedelta(days=self.window_days)).date()
        return datetime.combine(first_day, time.min), window_end

    def compute_patterns(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        run_id: str = "",
    ) -> List[PatternAnalysis]:
        """Compute ranked patterns for the window ending at ``now`` without storing them."""
        window_start, window_end = self.window_bounds(now)

        signals = self.store.list_signals(user_id, None, window_start, window_end)
        if not signals:
            self.logger.info(f"No signals for {user_id} in the last {self.window_days} days")
            return []

        aligned = self.aligner.align(signals, window_start, window_end)
        trend_variables = sorted(aligned) if config.ENABLE_TREND_ANALYSIS else []
        results = self.engine.analyze(aligned, self._pairs(aligned), trend_variables)

        return self.synthesizer.synthesize(
            user_id,
            results,
            timeframe_start=window_start,
            timeframe_end=window_end,
            run_id=run_id,
            created_at=datetime.utcnow(),
        )

    def analyze_patterns(self, user_id: str, now: Optional[datetime] = None) -> List[PatternAnalysis]:
        """Compute and store a new set of patterns for a user.

        Every run is recorded, including one that surfaces nothing, so the
        latest patterns always reflect the latest run.

        Raises:
            AnalysisFailedError: the store failed or held malformed data; no
                rows from this run exist.
        """
        run_id = str(uuid.uuid4())
        window_start, window_end = self.window_bounds(now)
        try:
            patterns = self.compute_patterns(user_id, now=window_end, run_id=run_id)
            self.store.append_pattern_analyses(
                user_id, patterns, run_id=run_id, timeframe_start=window_start, timeframe_end=window_end
            )
        except (PersistenceError, InvalidEntryError) as e:
            self.logger.error(f"Pattern analysis for {user_id} failed: {e}")
            raise AnalysisFailedError(f"Pattern analysis for {user_id} failed") from e

        self.logger.info(f"Run {run_id} for {user_id}: {len(patterns)} patterns")
        return patterns

    def get_latest_patterns(self, user_id: str) -> List[PatternAnalysis]:
        """Rows of the user's most recent run, ranked; empty if that run surfaced nothing."""
        run_id = self.store.latest_run_id(user_id)
        if run_id is None:
            return []
        return self.store.list_pattern_analyses(user_id, run_id=run_id)
