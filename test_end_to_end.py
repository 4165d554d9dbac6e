import logging
import unittest
from pathlib import Path

from storybook_audit.config import AuditSettings
from fake_catalog import FakeCatalogPage, FakeEntry, axe_report, violation
from storybook_audit.reporter import format_summary
from storybook_audit.sweep import CatalogAuditor

logging.basicConfig(level=logging.INFO)

CONTRAST = "Color contrast must meet WCAG 2 AA"
LANDMARK = "Ensures the document has a main landmark"


class TestThreeEntryCatalog(unittest.IsolatedAsyncioTestCase):
    async def test_only_the_contrast_rule_is_reported(self):
        entries = [
            FakeEntry("button--primary", axe_report(violation(LANDMARK))),
            FakeEntry(
                "button--secondary",
                axe_report(
                    violation(CONTRAST, [("Fix any of the following:\n  Element has insufficient color contrast of 2.1",
                                          '<button class="btn-secondary">Cancel</button>')]),
                    violation(LANDMARK),
                ),
            ),
            FakeEntry("card--default", axe_report()),
        ]
        page = FakeCatalogPage(entries)
        printed = []

        auditor = CatalogAuditor(page, AuditSettings(storybook_dir=Path("."), key_delay_ms=0), emit=printed.append)
        summary = await auditor.run()
        output = "".join(printed)

        print(output)
        print(format_summary(summary))

        self.assertEqual(page.visited, ["button--primary", "button--secondary", "card--default"])
        self.assertEqual(len(printed), 1)
        self.assertEqual(output.count("###\n### "), 1)
        self.assertIn("### button--secondary:", output)
        self.assertEqual(output.count("Description: "), 1)
        self.assertIn(f"Description: {CONTRAST}", output)
        self.assertIn('<button class="btn-secondary">Cancel</button>', output)
        self.assertNotIn("landmark", output)
        self.assertEqual(summary.violation_count, 1)
        self.assertEqual(summary.entries_with_violations, 1)


if __name__ == "__main__":
    unittest.main()
