from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Between:
    """Inclusive range criterion, rendered by adapters as ``BETWEEN``.

    >>> Between(18, 65).as_tuple()
    (18, 65)
    """

    start: Any
    end: Any

    def as_tuple(self) -> tuple[Any, Any]:
        return (self.start, self.end)
