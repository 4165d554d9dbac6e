"""
In-memory stand-in for a Playwright page showing a Storybook explorer.

The tree is a flat cycle of entries: moving past the last one wraps to the
first, whose offset is the smallest. Which keyboard sequences actually move
the selection is configurable, as are a point at which the tree drops its
selection and an entry the selection sticks to for a few audits. Injecting the axe invocation script emits the selected entry's
scripted report on the console channel.
"""
import json
from typing import Dict, List, Optional, Sequence, Tuple

from storybook_audit.audit_runner import AXE_INVOCATION_SCRIPT
from storybook_audit.selection import SELECTED_ID_SCRIPT, SELECTED_OFFSET_SCRIPT

HEADER = -1
ROW_HEIGHT = 40


def violation(description: str, nodes: Sequence[Tuple[str, str]] = (("Fix any of the following", "<div></div>"),)) -> Dict:
    return {
        "id": description.lower().replace(" ", "-")[:30],
        "impact": "serious",
        "description": description,
        "nodes": [{"failureSummary": s, "html": h, "target": ["div"]} for s, h in nodes],
    }


def axe_report(*violations: Dict) -> str:
    return json.dumps({"violations": list(violations), "passes": [], "incomplete": []})


class FakeEntry:
    def __init__(self, entry_id: str, report: Optional[str] = None):
        self.id = entry_id
        self.report = axe_report() if report is None else report


class FakeConsoleMessage:
    def __init__(self, text: str):
        self.text = text
        self.type = "log"


class FakeKeyboard:
    def __init__(self, page: "FakeCatalogPage"):
        self.page = page
        self.pressed: List[str] = []

    async def press(self, key: str, delay: float = 0):
        self.pressed.append(key)
        self.page._on_key(key)


class FakeFrame:
    def __init__(self, page: "FakeCatalogPage", url: str):
        self.page = page
        self.url = url
        self.injected: List[str] = []

    async def add_script_tag(self, url: Optional[str] = None, content: Optional[str] = None):
        self.injected.append(url or content)
        if content == AXE_INVOCATION_SCRIPT:
            self.page._run_axe()


class FakeCatalogPage:
    def __init__(
        self,
        entries: Sequence[FakeEntry],
        descend_works: bool = True,
        sibling_works: bool = True,
        lose_selection_at: Optional[int] = None,
        stuck_at: Optional[int] = None,
        stuck_for: int = 0,
        with_content_frame: bool = True,
        axe_hangs: bool = False,
    ):
        self.entries = list(entries)
        self.descend_works = descend_works
        self.sibling_works = sibling_works
        self.lose_selection_at = lose_selection_at
        self.stuck_at = stuck_at
        self.stuck_for = stuck_for
        self.axe_hangs = axe_hangs

        self.selected: Optional[int] = None
        self.moves = 0
        self._pending_key: Optional[str] = None
        self._listeners: Dict[str, List] = {}

        self.keyboard = FakeKeyboard(self)
        self.frames = [FakeFrame(self, "http://localhost:9876/")]
        if with_content_frame:
            self.frames.append(FakeFrame(self, "http://localhost:9876/iframe.html?id=story&viewMode=story"))

        self.visited: List[str] = []
        self.screenshots: List[str] = []
        self.waits: List[float] = []
        self.goto_urls: List[str] = []

    # -- explorer tree --

    def position_of(self, index: int) -> int:
        return 0 if index == HEADER else (index + 1) * ROW_HEIGHT

    def _on_key(self, key: str):
        if key != "Enter":
            self._pending_key = key
            return

        key, self._pending_key = self._pending_key, None
        if self.selected is None or not self.entries:
            return
        works = (key == "ArrowRight" and self.descend_works) or (key == "ArrowDown" and self.sibling_works)
        if not works or self._stuck():
            return

        self.moves += 1
        nxt = (self.selected + 1) % len(self.entries)
        if self.lose_selection_at is not None and nxt == self.lose_selection_at and self.selected != HEADER:
            self.selected = None
        else:
            self.selected = nxt

    def _stuck(self) -> bool:
        if self.stuck_at is None or self.selected != self.stuck_at:
            return False
        return self.visited.count(self.entries[self.stuck_at].id) <= self.stuck_for

    async def evaluate(self, script: str):
        if self.selected is None:
            return None
        if script == SELECTED_OFFSET_SCRIPT:
            return self.position_of(self.selected)
        if script == SELECTED_ID_SCRIPT:
            return None if self.selected == HEADER else self.entries[self.selected].id
        raise AssertionError(f"unexpected script: {script}")

    async def goto(self, url: str):
        self.goto_urls.append(url)

    async def wait_for_selector(self, selector: str):
        return True

    async def click(self, selector: str):
        self.selected = HEADER if self.entries else None

    # -- console channel --

    def on(self, event: str, handler):
        self._listeners.setdefault(event, []).append(handler)

    once = on

    def remove_listener(self, event: str, handler):
        self._listeners.get(event, []).remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def _run_axe(self):
        if self.axe_hangs or self.selected in (None, HEADER):
            return
        entry = self.entries[self.selected]
        self.visited.append(entry.id)
        handlers, self._listeners["console"] = self._listeners.get("console", []), []
        for handler in handlers:
            handler(FakeConsoleMessage(entry.report))

    # -- misc page capabilities --

    async def wait_for_timeout(self, ms: float):
        self.waits.append(ms)

    async def screenshot(self, path: Optional[str] = None, full_page: bool = False):
        self.screenshots.append(path)
        return b""
