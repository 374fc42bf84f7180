from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

_YEAR_RE = re.compile(r"^(\d{4})-(\d{4})$")


@dataclass(frozen=True)
class AcademicYear:
    start_year: int
    end_year: int

    @classmethod
    def parse(cls, raw: str) -> "AcademicYear":
        m = _YEAR_RE.match((raw or "").strip())
        if not m:
            raise ValueError(f"Academic year must look like YYYY-YYYY, got {raw!r}")
        start, end = int(m.group(1)), int(m.group(2))
        if end != start + 1:
            raise ValueError(f"Academic year {raw!r} must span two consecutive years")
        return cls(start, end)

    @property
    def label(self) -> str:
        return f"{self.start_year}-{self.end_year}"

    def next(self) -> "AcademicYear":
        return AcademicYear(self.start_year + 1, self.end_year + 1)

    def window(self, start_month: int = 8) -> tuple[datetime, datetime]:
        """Half-open [start, end) datetime range covered by this academic year.

        With the default start month the window is Aug 1 of the start year
        through Jul 31 of the end year.
        """
        start = datetime(self.start_year, start_month, 1)
        end = datetime(self.start_year + 1, start_month, 1)
        return start, end

    def __str__(self) -> str:
        return self.label
