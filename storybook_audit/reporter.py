import re
import logging
from typing import List, Optional

from pydantic import ValidationError

from storybook_audit.models import AuditResult, SweepSummary, Violation

logger = logging.getLogger(__name__)

# Rules that only make sense for a full page. A story renders a single
# component in isolation, so these always fire.
NOISE_PATTERNS = [
    re.compile(r"contains a level-one heading"),
    re.compile(r"document has a main landmark"),
    re.compile(r"content is contained by landmarks"),
    re.compile(r"bypass navigation and jump straight"),
]


def is_noise(violation: Violation) -> bool:
    return any(p.search(violation.description) for p in NOISE_PATTERNS)


def filter_violations(violations: List[Violation]) -> List[Violation]:
    """Drops violations of rules that are false positives for isolated components."""
    return [v for v in violations if not is_noise(v)]


def parse_report(text: str) -> Optional[AuditResult]:
    """
    Parses the JSON line axe-core printed to the console.
    Returns None when the payload is not a report (e.g. a story logged
    something of its own first).
    """
    try:
        return AuditResult.model_validate_json(text)
    except ValidationError as e:
        logger.warning(f"Couldn't parse! {text}")
        logger.debug(f"Report validation errors: {e}")
        return None


def format_violations(entry_name: str, violations: List[Violation]) -> str:
    header = f"###\n### {entry_name}:\n###\n"

    blocks = []
    for v in violations:
        node_msgs = [f"Summary: {n.failure_summary}\n{n.html}\n" for n in v.nodes]
        blocks.append(f"Description: {v.description}\n" + "\n".join(node_msgs))

    return header + "\n" + "\n".join(blocks) + "\n"


def format_summary(summary: SweepSummary) -> str:
    return (
        f"Audited {summary.entries_audited} entries: "
        f"{summary.entries_with_violations} with violations, "
        f"{summary.violation_count} violations in total."
    )
