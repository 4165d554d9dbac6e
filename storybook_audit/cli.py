import os
import sys
import asyncio
import logging
import argparse
from typing import List, Optional, Tuple

from playwright.async_api import async_playwright

from storybook_audit.config import DEFAULT_PORT, AuditSettings
from storybook_audit.models import ScreenshotMode, SweepSummary
from storybook_audit.reporter import format_summary
from storybook_audit.server import serve_catalog
from storybook_audit.sweep import CatalogAuditor

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_VIOLATIONS = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storybook-axe-audit",
        description="Run axe-core against every story of a compiled Storybook.",
    )
    parser.add_argument("--storybook", default=None,
                        help="Path to your compiled Storybook directory (create with build-storybook); "
                             "falls back to STORYBOOK_AUDIT_STORYBOOK")
    parser.add_argument("--port", type=int, default=None,
                        help=f"The port of the local internal HTTP server (default: {DEFAULT_PORT})")
    parser.add_argument("--screenshot", action="store_true", help="Dump screenshots of components that fail")
    parser.add_argument("--screenshot-all", action="store_true", help="Dump screenshots of all components")
    parser.add_argument("--output-dir", default=None, help="Directory for screenshots (default: current directory)")
    parser.add_argument("--axe-script", default=None, help="Local axe.min.js to serve alongside the Storybook")
    parser.add_argument("--axe-url", default=None, help="URL of the axe-core script to inject")
    parser.add_argument("--report-timeout", type=float, default=None,
                        help="Seconds to wait for each axe-core report (0 waits forever)")
    parser.add_argument("--settle-ms", type=int, default=None, help="Pause after each story for animations to finish")
    parser.add_argument("--max-entries", type=int, default=None, help="Stop after auditing this many stories")
    parser.add_argument("--fail-on-violations", action="store_true", help="Exit non-zero when violations are found")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def screenshot_mode(args: argparse.Namespace) -> ScreenshotMode:
    if args.screenshot_all:
        return ScreenshotMode.ALL
    if args.screenshot:
        return ScreenshotMode.FAILURES
    return ScreenshotMode.NONE


def settings_from_args(args: argparse.Namespace) -> AuditSettings:
    return AuditSettings.from_env(
        storybook_dir=args.storybook,
        port=args.port,
        screenshot_mode=screenshot_mode(args),
        output_dir=args.output_dir,
        axe_script=args.axe_script,
        axe_url=args.axe_url,
        report_timeout=args.report_timeout,
        settle_ms=args.settle_ms,
        max_entries=args.max_entries,
        fail_on_violations=args.fail_on_violations,
    )


def resolve_log_level(verbose: bool) -> Tuple[int, Optional[str]]:
    """Returns the level to log at and the rejected LOG_LEVEL value, if any."""
    if verbose:
        return logging.DEBUG, None
    name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        return logging.INFO, name
    return level, None


def configure_logging(verbose: bool):
    level, rejected = resolve_log_level(verbose)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            # stdout carries the violation report
            logging.StreamHandler(sys.stderr)
        ],
    )
    if rejected:
        logger.warning(f"Unknown LOG_LEVEL {rejected!r}; using INFO")


async def run_audit(settings: AuditSettings) -> SweepSummary:
    async with serve_catalog(settings):
        logger.info("Initializing browser")
        async with async_playwright() as p:
            browser = await p.chromium.launch()
            try:
                context = await browser.new_context(
                    viewport={"width": settings.viewport_width, "height": settings.viewport_height},
                    device_scale_factor=1,
                )
                page = await context.new_page()
                return await CatalogAuditor(page, settings).run()
            finally:
                await browser.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = settings_from_args(args)
        summary = asyncio.run(run_audit(settings))
    except Exception as e:
        logger.error(f"Audit aborted: {e}", exc_info=True)
        return EXIT_FATAL

    print(format_summary(summary))
    if settings.fail_on_violations and summary.violation_count:
        return EXIT_VIOLATIONS
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
