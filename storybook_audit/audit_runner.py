import re
import json
import asyncio
import logging
from pathlib import Path

from storybook_audit.config import AuditSettings
from storybook_audit.errors import AuditTimeoutError, ContentFrameNotFoundError, SelectionLostError
from storybook_audit.models import EntryAudit, ScreenshotMode
from storybook_audit.reporter import filter_violations, parse_report
from storybook_audit.selection import SelectionTracker

logger = logging.getLogger(__name__)

# axe.run() executes inside the content frame's own script context, so its
# result comes back as a single console line rather than a return value.
AXE_INVOCATION_SCRIPT = "window.axe.run().then(x => console.log(JSON.stringify(x)))"


def screenshot_filename(prefix: str, entry_name: str) -> str:
    safe = re.sub(r"[^a-zA-Z0-9._-]+", "_", entry_name)
    return f"{prefix}-{safe}.png"


class AuditRunner:
    def __init__(self, page, tracker: SelectionTracker, settings: AuditSettings):
        self.page = page
        self.tracker = tracker
        self.settings = settings
        self.frame_pattern = re.compile(settings.content_frame_pattern)

    def content_frame(self):
        """The frame rendering the selected story, as opposed to the explorer chrome."""
        for frame in self.page.frames:
            if self.frame_pattern.search(frame.url):
                return frame
        raise ContentFrameNotFoundError("Couldn't find story content!")

    async def _wait_for_console_line(self, trigger) -> str:
        """Subscribes to the next console message, runs `trigger`, and returns the message text."""
        loop = asyncio.get_running_loop()
        report = loop.create_future()

        def _on_console(msg):
            if not report.done():
                report.set_result(msg.text)

        self.page.once("console", _on_console)
        try:
            await trigger()
            return await asyncio.wait_for(report, timeout=self.settings.report_timeout)
        except asyncio.TimeoutError:
            raise AuditTimeoutError(
                f"axe-core did not report within {self.settings.report_timeout}s"
            ) from None
        finally:
            if not report.done():
                self.page.remove_listener("console", _on_console)

    async def scan(self) -> str:
        """Runs axe-core against the content frame and returns its raw JSON report."""
        frame = self.content_frame()
        logger.debug(f"Injecting axe-core from {self.settings.resolved_axe_url} into {frame.url}")
        await frame.add_script_tag(url=self.settings.resolved_axe_url)
        return await self._wait_for_console_line(
            lambda: frame.add_script_tag(content=AXE_INVOCATION_SCRIPT)
        )

    async def screenshot(self, prefix: str, entry_name: str) -> str:
        output_dir = Path(self.settings.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        path = str(output_dir / screenshot_filename(prefix, entry_name))
        await self.page.screenshot(path=path, full_page=True)
        logger.debug(f"Saved screenshot {path}")
        return path

    async def audit_current_entry(self) -> EntryAudit:
        raw = await self.scan()

        name = await self.tracker.current_entry_id()
        if name is None:
            raise SelectionLostError("No catalog entry is selected in the explorer menu")

        result = parse_report(raw)
        violations = filter_violations(result.violations) if result else []
        if violations:
            logger.debug(json.dumps([v.model_dump(by_alias=True) for v in violations], indent=2))

        audit = EntryAudit(name=name, violations=violations, report_parsed=result is not None)

        mode = self.settings.screenshot_mode
        if mode is ScreenshotMode.ALL:
            audit.screenshot = await self.screenshot("screenshot", name)
        elif mode is ScreenshotMode.FAILURES and violations:
            audit.screenshot = await self.screenshot("failed", name)

        return audit

    async def settle(self):
        """Lets transitions finish; in-flight animations skew contrast checks."""
        if self.settings.settle_ms:
            await self.page.wait_for_timeout(self.settings.settle_ms)
