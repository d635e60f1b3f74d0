# services/game_session.py
"""
Hit-testing state machine for one puzzle.

ACTIVE  --miss / non-final hit-->  ACTIVE
ACTIVE  --hit on the last region / reveal_all-->  COMPLETE
COMPLETE is terminal; a new puzzle means a new GameSession.
"""
from __future__ import annotations

import math
import uuid
import logging
from typing import List, Optional

from models.image import Image
from models.region import Region
from models.game_state import GameState, GameStatus, ClickOutcome, ClickResult

logger = logging.getLogger(__name__)

NO_DIFFERENCES_MESSAGE = "No differences could be generated, please try another image."
COMPLETE_MESSAGE = "Congratulations, you found them all! Choose another image to play again!"


class GameSession:
    """Owns both pixel buffers and the progress of a single puzzle."""

    def __init__(self, original: Image, modified: Image, regions: List[Region],
                 session_id: Optional[str] = None):
        self.session_id = session_id or str(uuid.uuid4())
        self.original = original
        self.modified = modified
        self.state = GameState.fresh(regions)

    # ─── Read-only views ───────────────────────────────────────────
    @property
    def regions(self) -> List[Region]:
        return self.state.regions

    @property
    def remaining(self) -> int:
        return self.state.remaining

    @property
    def incorrect_guesses(self) -> int:
        return self.state.incorrect_guesses

    @property
    def status(self) -> GameStatus:
        return self.state.status

    @property
    def is_complete(self) -> bool:
        return self.status is GameStatus.COMPLETE

    # ─── Transitions ───────────────────────────────────────────────
    @staticmethod
    def _is_hit(region: Region, x: float, y: float) -> bool:
        cx, cy = region.bbox.center
        return math.hypot(x - cx, y - cy) < region.bbox.hit_tolerance

    def register_click(self, x: float, y: float) -> ClickResult:
        """
        Credit at most one region per click: the first unfound one, in list
        order, whose tolerance circle contains the point.
        """
        if self.is_complete:
            return ClickResult(ClickOutcome.IGNORED)

        for region in self.state.regions:
            if not region.found and self._is_hit(region, x, y):
                region.found = True
                self.state.remaining -= 1
                logger.info(f"Session {self.session_id}: hit at ({x}, {y}), {self.state.remaining} left")
                return ClickResult(ClickOutcome.HIT, region)

        self.state.incorrect_guesses += 1
        logger.debug(f"Session {self.session_id}: miss at ({x}, {y})")
        return ClickResult(ClickOutcome.MISS)

    def reveal_all(self) -> List[Region]:
        """Mark every unfound region found; returns the ones revealed by this call."""
        revealed = [region for region in self.state.regions if not region.found]
        for region in revealed:
            region.found = True
        self.state.remaining = 0
        return revealed

    # ─── Status surface ────────────────────────────────────────────
    def status_message(self) -> str:
        if not self.state.regions:
            return NO_DIFFERENCES_MESSAGE
        if self.state.remaining > 0:
            return f"{self.state.remaining} difference(s) to go!"
        return COMPLETE_MESSAGE

    def incorrect_guesses_message(self) -> str:
        return f"Incorrect Clicks: {self.state.incorrect_guesses}"

    def to_dict(self) -> dict:
        return {
            'session_id': self.session_id,
            'width': self.original.width,
            'height': self.original.height,
            'status': self.status.value,
            'remaining': self.state.remaining,
            'total': len(self.state.regions),
            'incorrect_guesses': self.state.incorrect_guesses,
            'message': self.status_message(),
            'incorrect_message': self.incorrect_guesses_message(),
            'regions': [region.as_dict() for region in self.state.regions],
        }
