import logging
import threading
from collections import Counter
from typing import Dict

from .models import PlacementOutcome, PlacementResult

_SIMULATED = (PlacementOutcome.COPIED, PlacementOutcome.MOVED)


class RunStatistics:
    """
    Outcome counters shared by every worker of a run.

    Each finished file is recorded exactly once. Dry-run previews of a
    copy or move are kept apart from the real tallies, since nothing was
    actually done; skipped and no-metadata files count either way.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counts: Counter = Counter()
        self._previewed = 0

    def record(self, result: PlacementResult):
        with self._lock:
            if result.simulated and result.outcome in _SIMULATED:
                self._previewed += 1
            else:
                self._counts[result.outcome] += 1

    def count(self, outcome: PlacementOutcome) -> int:
        with self._lock:
            return self._counts[outcome]

    @property
    def copied(self) -> int:
        return self.count(PlacementOutcome.COPIED)

    @property
    def moved(self) -> int:
        return self.count(PlacementOutcome.MOVED)

    @property
    def skipped(self) -> int:
        return self.count(PlacementOutcome.SKIPPED)

    @property
    def no_metadata(self) -> int:
        return self.count(PlacementOutcome.NO_METADATA)

    @property
    def failed(self) -> int:
        return self.count(PlacementOutcome.FAILED)

    @property
    def previewed(self) -> int:
        with self._lock:
            return self._previewed

    @property
    def total(self) -> int:
        with self._lock:
            return sum(self._counts.values()) + self._previewed

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            data = {outcome.value: self._counts[outcome] for outcome in PlacementOutcome}
            data['previewed'] = self._previewed
            return data

    def format_summary(self) -> str:
        line = (f"Copied: {self.copied}, Moved: {self.moved}, Skipped: {self.skipped}, "
                f"Without metadata: {self.no_metadata}, Failed: {self.failed}")
        if self.previewed:
            line += f" (dry run: {self.previewed} would be imported)"
        return line

    def log_summary(self):
        logging.info(f"Run summary: {self.format_summary()}")
        if self.failed:
            logging.warning(f"{self.failed} file(s) could not be placed; see errors above.")
