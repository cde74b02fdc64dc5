from __future__ import annotations

from typing import Iterable


class ConfigError(ValueError):
    """Rejected simulation configuration. Raised before any trial runs."""

    def __init__(self, problems: Iterable[str] | str):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))
