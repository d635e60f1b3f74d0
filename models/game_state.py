from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from models.region import Region


class GameStatus(str, Enum):
    ACTIVE = "active"
    COMPLETE = "complete"


class ClickOutcome(str, Enum):
    HIT = "hit"
    MISS = "miss"
    IGNORED = "ignored"    # puzzle already complete


@dataclass
class ClickResult:
    outcome: ClickOutcome
    region: Optional[Region] = None


@dataclass
class GameState:
    """
    Progress of one puzzle.
    ``remaining`` always equals the number of regions with ``found == False``.
    """
    regions: List[Region] = field(default_factory=list)
    remaining: int = 0
    incorrect_guesses: int = 0

    @classmethod
    def fresh(cls, regions: List[Region]) -> "GameState":
        for region in regions:
            region.found = False
        return cls(regions=list(regions), remaining=len(regions), incorrect_guesses=0)

    @property
    def status(self) -> GameStatus:
        return GameStatus.ACTIVE if self.remaining > 0 else GameStatus.COMPLETE
