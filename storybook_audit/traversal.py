import logging
from enum import Enum
from typing import Callable, Optional, Sequence

from storybook_audit.errors import EmptyCatalogError, SelectionLostError
from storybook_audit.selection import EXPLORER_TREE, Position, SelectionTracker

logger = logging.getLogger(__name__)

COMPONENT_NODE_SELECTOR = f'{EXPLORER_TREE} [data-nodetype="component"]'
FIRST_ITEM_SELECTOR = f"{EXPLORER_TREE} .sidebar-item"

# Smaller than any real offset, so the first wrap check never ends the sweep.
WRAP_SENTINEL = -1

class AdvanceAttempt(Enum):
    """Keyboard sequences that may move the explorer selection."""
    DESCEND = ("ArrowRight", "Enter")
    SIBLING = ("ArrowDown", "Enter")


class AdvanceOutcome(Enum):
    DESCENDED = "descended"
    MOVED_TO_SIBLING = "moved_to_sibling"
    EXHAUSTED = "exhausted"


OUTCOME_FOR_ATTEMPT = {
    AdvanceAttempt.DESCEND: AdvanceOutcome.DESCENDED,
    AdvanceAttempt.SIBLING: AdvanceOutcome.MOVED_TO_SIBLING,
}

Moved = Callable[[Optional[Position], Optional[Position]], bool]


def _changed(before: Optional[Position], after: Optional[Position]) -> bool:
    return after is not None and after != before


def _below_top(before: Optional[Position], after: Optional[Position]) -> bool:
    return (after or 0) > 0


class TraversalDriver:
    """
    Walks the explorer tree one entry at a time using only keyboard input.

    The tree's shape is unknown up front: a node may be an expandable group or
    a leaf. Each advance first tries to descend (expand / enter children) and
    then falls back to moving to the next sibling, for a bounded number of
    rounds. The sweep ends when the selection wraps back to the top of the
    tree, i.e. its offset shrinks.
    """

    def __init__(self, page, tracker: SelectionTracker, retries: int = 3, key_delay_ms: int = 150):
        self.page = page
        self.tracker = tracker
        self.retries = retries
        self.key_delay_ms = key_delay_ms

        self.previous_position: Position = WRAP_SENTINEL
        self.moved_once = False
        self.last_outcome: Optional[AdvanceOutcome] = None

    @property
    def stalled(self) -> bool:
        """
        True when the selection has never left the first entry, i.e. the
        catalog holds a single entry and can never wrap to a smaller offset.
        """
        return self.last_outcome is AdvanceOutcome.EXHAUSTED and not self.moved_once

    async def _press(self, attempt: AdvanceAttempt):
        for key in attempt.value:
            await self.page.keyboard.press(key, delay=self.key_delay_ms)

    async def _attempt(self, attempt: AdvanceAttempt, moved: Moved) -> bool:
        before = await self.tracker.current_position()
        await self._press(attempt)
        after = await self.tracker.current_position()
        return moved(before, after)

    async def _run(self, attempts: Sequence[AdvanceAttempt], moved: Moved) -> AdvanceOutcome:
        for _ in range(self.retries):
            for attempt in attempts:
                if await self._attempt(attempt, moved):
                    logger.debug(f"{attempt.name.lower()} worked!")
                    return OUTCOME_FOR_ATTEMPT[attempt]
        return AdvanceOutcome.EXHAUSTED

    async def start(self, url: str) -> Position:
        """Loads the explorer and selects the first catalog entry."""
        logger.debug(f"Navigating to {url}")
        await self.page.goto(url)
        await self.page.wait_for_selector(COMPONENT_NODE_SELECTOR)
        await self.page.click(FIRST_ITEM_SELECTOR)

        # The clicked item is the top-most node, so any move lands below it.
        outcome = await self._run((AdvanceAttempt.SIBLING, AdvanceAttempt.DESCEND), _below_top)
        position = await self.tracker.current_position()
        if position is None:
            raise EmptyCatalogError("No catalog entry could be selected in the explorer tree")
        if outcome is AdvanceOutcome.EXHAUSTED:
            logger.warning(f"Could not move past the first tree item; starting at offset {position}")

        self.previous_position = WRAP_SENTINEL
        self.moved_once = False
        self.last_outcome = None
        return position

    async def advance(self) -> AdvanceOutcome:
        """
        Moves the selection to the next entry. An exhausted advance is not an
        error: some re-renders never register a position change, and the wrap
        check ends the sweep.
        """
        outcome = await self._run((AdvanceAttempt.DESCEND, AdvanceAttempt.SIBLING), _changed)
        if outcome is AdvanceOutcome.EXHAUSTED:
            logger.debug(f"Selection did not move after {self.retries} rounds")
        else:
            self.moved_once = True
        self.last_outcome = outcome
        return outcome

    async def wrapped_around(self) -> bool:
        """True once the selection has cycled back to the top of the tree."""
        position = await self.tracker.current_position()
        if position is None:
            raise SelectionLostError("Explorer tree lost its selection mid-sweep")

        if position < self.previous_position:
            logger.debug(f"{self.previous_position} > {position}")
            return True

        self.previous_position = position
        return False
