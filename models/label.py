from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Label:
    """A Gmail label resolved for this run."""

    name: str
    id: str
