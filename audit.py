#!/usr/bin/env python3
"""
WebAudit CLI
Usage: python audit.py https://example.com [--output-dir DIR] [--concurrency N] [--json]
"""

import argparse
import asyncio
import json
import sys

from webaudit.config import AuditConfig
from webaudit.core.auditor import AuditCoordinator
from webaudit.core.report import print_summary
from webaudit.models.types import ProbeKind
from webaudit.utils.log import configure_logging


def main():
    parser = argparse.ArgumentParser(
        description="WebAudit: headless-browser website audit",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  python audit.py https://example.com\n"
               "  python audit.py example.com --concurrency 50 --output-dir ./reports\n"
               "  python audit.py https://example.com --skip backlinks screenshot_review",
    )
    parser.add_argument("url", help="Website URL to audit")
    parser.add_argument("--output-dir", help="Directory for the JSON report (default: ./website-audit-reports)")
    parser.add_argument("--concurrency", type=int, help="Max simultaneous element interactions per batch")
    parser.add_argument("--timeout", type=int, help="Navigation timeout in milliseconds (default: 30000)")
    parser.add_argument("--max-links", type=int, help="Check at most this many links")
    parser.add_argument("--skip", nargs="+", default=[], choices=[k.value for k in ProbeKind],
                        metavar="PROBE", help="Probes to skip (their fallback is reported)")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON instead of the summary")

    args = parser.parse_args()

    url = args.url
    if not url.startswith("http"):
        url = f"https://{url}"

    config = AuditConfig.from_env(
        output_dir=args.output_dir,
        concurrency_limit=args.concurrency,
        timeout_ms=args.timeout,
        max_links=args.max_links,
        verbose=False if args.quiet else None,
    )
    configure_logging(config.verbose)

    print(f"\n  Starting audit for: {url}\n")

    report = asyncio.run(run_audit(url, config, [ProbeKind(s) for s in args.skip]))

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print_summary(report)


def _cli_progress(event_type: str, data: dict):
    if event_type == "probe_start":
        print(f"   [{data.get('position', '?')}/{data.get('total', '?')}] {data.get('probe', '')}")
    elif event_type == "probe_failed":
        print(f"         [FALLBACK] {data.get('error', '')[:100]}")
    elif event_type == "audit_complete":
        path = data.get("report_path")
        print(f"\n   Done: overall score {data.get('overall_score')}" + (f", report saved to {path}" if path else "") + "\n")


async def run_audit(url: str, config: AuditConfig, skip: list[ProbeKind]):
    try:
        coordinator = AuditCoordinator(config=config, on_progress=_cli_progress, skip=skip)
        return await coordinator.run_full_audit(url)
    except Exception as e:
        print(f"\n  Audit failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
