from storybook_audit.models import AuditResult, EntryAudit, SweepSummary, Violation, ViolationNode
from storybook_audit.reporter import (
    NOISE_PATTERNS,
    filter_violations,
    format_summary,
    format_violations,
    parse_report,
)

NOISY = [
    "Ensure that the page, or at least one of its frames contains a level-one heading",
    "Ensures the document has a main landmark",
    "Ensures all page content is contained by landmarks",
    "Ensures each page has at least one mechanism for a user to bypass navigation and jump straight to the content",
]

REAL = [
    "Ensures the contrast between foreground and background colors meets WCAG 2 AA contrast ratio thresholds",
    "Ensures buttons have discernible text",
    "Ensures every id attribute value is unique",
]


def _violations(descriptions):
    return [Violation(description=d) for d in descriptions]


def test_noise_is_removed_and_real_rules_kept():
    mixed = _violations([REAL[0], NOISY[0], REAL[1], NOISY[1], NOISY[2], REAL[2], NOISY[3]])

    kept = filter_violations(mixed)

    assert [v.description for v in kept] == REAL


def test_every_denylist_pattern_matches_something():
    for pattern in NOISE_PATTERNS:
        assert any(pattern.search(d) for d in NOISY), pattern.pattern


def test_filter_is_idempotent():
    mixed = _violations(NOISY + REAL + ["", "landmarks"])
    once = filter_violations(mixed)
    assert filter_violations(once) == once


def test_filter_keeps_order_and_empty_input():
    assert filter_violations([]) == []
    assert filter_violations(_violations(REAL[::-1])) == _violations(REAL[::-1])


def test_parse_report_reads_axe_payload():
    raw = (
        '{"testEngine": {"name": "axe-core"}, "violations": [{"id": "color-contrast", "impact": "serious",'
        ' "description": "Color contrast must meet WCAG 2 AA", "nodes": [{"failureSummary": "Fix it",'
        ' "html": "<span>low</span>", "target": ["span"]}]}], "passes": []}'
    )

    result = parse_report(raw)

    assert isinstance(result, AuditResult)
    assert result.violations[0].id == "color-contrast"
    assert result.violations[0].nodes[0].failure_summary == "Fix it"
    assert result.violations[0].nodes[0].html == "<span>low</span>"


def test_parse_report_rejects_garbage():
    assert parse_report("[MockSDK] hello from a story") is None
    assert parse_report('{"passes": []}') is None
    assert parse_report("null") is None


def test_format_violations_layout():
    violations = [
        Violation(
            description="Color contrast must meet WCAG 2 AA",
            nodes=[
                ViolationNode(failure_summary="Fix any of the following", html='<span class="a">x</span>'),
                ViolationNode(failure_summary="Fix all of the following", html="<b>y</b>"),
            ],
        ),
        Violation(description="Buttons must have discernible text", nodes=[ViolationNode(html="<button></button>")]),
    ]

    text = format_violations("button--primary", violations)

    assert text == (
        "###\n### button--primary:\n###\n"
        "\n"
        "Description: Color contrast must meet WCAG 2 AA\n"
        'Summary: Fix any of the following\n<span class="a">x</span>\n'
        "\n"
        "Summary: Fix all of the following\n<b>y</b>\n"
        "\n"
        "Description: Buttons must have discernible text\n"
        "Summary: \n<button></button>\n"
        "\n"
    )


def test_format_summary_counts():
    summary = SweepSummary(entries=[
        EntryAudit(name="a", violations=_violations(REAL[:2])),
        EntryAudit(name="b"),
        EntryAudit(name="c", violations=_violations(REAL[2:])),
    ])

    assert format_summary(summary) == "Audited 3 entries: 2 with violations, 3 violations in total."
