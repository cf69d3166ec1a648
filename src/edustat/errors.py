"""Error taxonomy for the activity calendar pipeline."""

from __future__ import annotations


class InputShapeError(ValueError):
    """Raw calendar input is not a key -> count mapping (or a list of day records)."""


class DataIntegrityError(ValueError):
    """A day count is negative or not an integer."""


class UnparseableKeyWarning(UserWarning):
    """One or more day keys could not be read as an ISO date or a Unix timestamp."""

    def __init__(self, skipped: int, samples: list[str] | None = None) -> None:
        self.skipped = skipped
        self.samples = samples or []
        detail = f" (e.g. {', '.join(repr(s) for s in self.samples)})" if self.samples else ""
        super().__init__(f"Skipped {skipped} unparseable day key(s){detail}")
