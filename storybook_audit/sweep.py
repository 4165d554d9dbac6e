import logging
from pathlib import Path
from typing import Callable

from storybook_audit.audit_runner import AuditRunner
from storybook_audit.config import AuditSettings
from storybook_audit.models import EntryAudit, SweepSummary
from storybook_audit.reporter import format_violations
from storybook_audit.selection import SelectionTracker
from storybook_audit.traversal import TraversalDriver

logger = logging.getLogger(__name__)


class CatalogAuditor:
    """
    Audits every entry of a Storybook explorer, one at a time.

    Each step scans the selected entry, advances the selection, waits for the
    UI to settle and then checks whether the tree wrapped back to the top.
    Entries with violations are printed as soon as they are audited, so a
    fatal error later in the sweep keeps what was already reported.
    """

    def __init__(self, page, settings: AuditSettings, emit: Callable[[str], None] = print):
        self.page = page
        self.settings = settings
        self.emit = emit
        self.tracker = SelectionTracker(page)
        self.driver = TraversalDriver(
            page,
            self.tracker,
            retries=settings.advance_retries,
            key_delay_ms=settings.key_delay_ms,
        )
        self.runner = AuditRunner(page, self.tracker, settings)
        self.summary = SweepSummary()

    async def _audit_or_capture(self) -> EntryAudit:
        try:
            return await self.runner.audit_current_entry()
        except Exception:
            path = str(Path(self.settings.output_dir) / "failed.png")
            try:
                await self.page.screenshot(path=path)
                logger.error(f"Audit failed; page captured to {path}")
            except Exception as shot_err:
                logger.error(f"Audit failed and the page could not be captured: {shot_err}")
            raise

    def _report(self, audit: EntryAudit):
        if audit.violations:
            self.emit(format_violations(audit.name, audit.violations))

    async def run(self) -> SweepSummary:
        await self.driver.start(self.settings.base_url)

        logger.info("Starting checks")
        while True:
            audit = await self._audit_or_capture()
            self.summary.entries.append(audit)
            logger.info(f"Audited {audit.name} ({len(audit.violations)} violations)")
            self._report(audit)

            await self.driver.advance()
            await self.runner.settle()

            if await self.driver.wrapped_around():
                break
            if self.driver.stalled:
                logger.warning("Selection never left the first entry; treating the catalog as a single entry")
                break
            max_entries = self.settings.max_entries
            if max_entries and self.summary.entries_audited >= max_entries:
                logger.warning(f"Reached the limit of {max_entries} entries; ending sweep")
                break

        return self.summary
