"""
Run one profile scrape from the CLI.

Opens a browser for manual login, runs the job, prints the summary and
closes the browser again whatever happened.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from app.services.profile_scraping_service import ProfileScrapingService


async def _run(args: argparse.Namespace) -> int:
    service = ProfileScrapingService()
    session_id = await service.start_session(browser=args.browser)
    try:
        summary = await service.scrape(
            session_id=session_id,
            search_query=args.query,
            target_count=args.count,
            filename=args.filename,
        )
    finally:
        await service.close_session(session_id)

    result = summary.result
    payload = {
        "search_query": result.search_query,
        "requested": result.requested_count,
        "collected": result.collected_count,
        "succeeded": result.success_count,
        "failed": result.failed_count,
        "export_path": str(result.export_path),
        "failures": [
            {
                "profile_url": record.target_id,
                "status": record.status.value,
                "error": record.error_detail,
            }
            for record in result.records
            if not record.is_success
        ],
    }
    print(json.dumps(payload, indent=2))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Scrape profiles for a people search.")
    parser.add_argument("--query", required=True, help="People search keywords.")
    parser.add_argument("--count", type=int, default=None, help="Number of profiles to collect.")
    parser.add_argument(
        "--browser",
        default=None,
        choices=["chromium", "firefox", "webkit"],
        help="Browser engine to launch.",
    )
    parser.add_argument("--filename", default=None, help="Export file name (.xlsx).")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
