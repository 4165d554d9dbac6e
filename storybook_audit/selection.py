import logging
from typing import Optional, Union

logger = logging.getLogger(__name__)

Position = Union[int, float]

EXPLORER_TREE = "#storybook-explorer-tree"
EXPLORER_MENU = "#storybook-explorer-menu"
SELECTED = '[data-selected="true"]'

SELECTED_OFFSET_SCRIPT = f"""() => {{
    const node = document.querySelector('{EXPLORER_TREE} {SELECTED}');
    return node ? node.offsetTop : null;
}}"""

SELECTED_ID_SCRIPT = f"""() => {{
    const node = document.querySelector('{EXPLORER_MENU} {SELECTED}');
    return node ? node.id : null;
}}"""


class SelectionTracker:
    """Reads which explorer tree node is selected in the host page."""

    def __init__(self, page):
        self.page = page

    async def current_position(self) -> Optional[Position]:
        """
        Vertical offset of the selected tree node, or None while nothing is
        marked selected (e.g. mid re-render). Offsets are only comparable
        within one pass over the tree.
        """
        offset = await self.page.evaluate(SELECTED_OFFSET_SCRIPT)
        logger.debug(f"selected offset: {offset}")
        return offset

    async def current_entry_id(self) -> Optional[str]:
        return await self.page.evaluate(SELECTED_ID_SCRIPT) or None
