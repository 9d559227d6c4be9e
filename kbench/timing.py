from contextlib import contextmanager
from time import perf_counter

# Phases a complete run records, in the order they happen
PHASES = ("setup", "write", "kernel-build", "execute", "read", "verify", "total")


class PhaseTimingRecord(dict):
    """Phase name -> elapsed seconds, in the order the phases finished."""

    def missing(self, phases=PHASES):
        return [p for p in phases if p not in self]

    def is_complete(self, phases=PHASES):
        return not self.missing(phases)

    def phase_sum(self):
        return sum(v for k, v in self.items() if k != "total")

    def overhead(self):
        """Time spent in the run but outside every named phase."""
        return self["total"] - self.phase_sum()

    def ordered(self):
        names = [p for p in PHASES if p in self] + [p for p in self if p not in PHASES]
        return [(p, self[p]) for p in names]


class PhaseTimer:
    def __init__(self):
        self.record = PhaseTimingRecord()

    @contextmanager
    def phase(self, name):
        # Nothing is recorded if the body raises: a failed run has no record
        start = perf_counter()
        yield
        self.record[name] = perf_counter() - start
