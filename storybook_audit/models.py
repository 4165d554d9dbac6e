from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScreenshotMode(str, Enum):
    NONE = "none"
    FAILURES = "failures"
    ALL = "all"


class ViolationNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    failure_summary: str = Field("", alias="failureSummary")
    html: str = ""


class Violation(BaseModel):
    """One failed axe-core rule and the DOM nodes it failed on."""
    model_config = ConfigDict(extra="ignore")

    description: str = ""
    nodes: List[ViolationNode] = Field(default_factory=list)
    id: Optional[str] = None
    impact: Optional[str] = None
    help: Optional[str] = None


class AuditResult(BaseModel):
    """The payload axe.run() serializes onto the console."""
    model_config = ConfigDict(extra="ignore")

    violations: List[Violation]


class EntryAudit(BaseModel):
    name: str
    violations: List[Violation] = Field(default_factory=list)
    report_parsed: bool = True
    screenshot: Optional[str] = None

    @property
    def has_violations(self) -> bool:
        return bool(self.violations)


class SweepSummary(BaseModel):
    entries: List[EntryAudit] = Field(default_factory=list)

    @property
    def entries_audited(self) -> int:
        return len(self.entries)

    @property
    def entries_with_violations(self) -> int:
        return sum(1 for e in self.entries if e.has_violations)

    @property
    def violation_count(self) -> int:
        return sum(len(e.violations) for e in self.entries)
