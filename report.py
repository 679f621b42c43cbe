"""
report.py
---------

Generate periodic (weekly or monthly) expense reports for one or more
users.  Each report runs the same analysis as the ``expense_insights``
tool, logs the headline numbers and collects the recommendations into a
single summary.  Scheduling is left to whatever invokes this script
(cron, a task runner, ...).

Usage:

    python report.py [--user-id 1 --user-id 2] [--report-type monthly] [--no-insights] [--no-comparison]
"""

import argparse
import logging
import os
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from database import session_scope
from insights import get_insights
from llm import ExpenseAgent, get_agent
from schemas import InsightsRequest, ReportRequest, ReportResult

logger = logging.getLogger(__name__)

MAX_REPORT_INSIGHTS = 10


def generate_reports(
    db: Session,
    req: ReportRequest,
    agent: Optional[ExpenseAgent] = None,
    today: Optional[date] = None,
) -> ReportResult:
    """Run the insights analysis for every requested user.

    Args:
        db: Open session; the caller owns its lifetime.
        req: Users and report options.
        agent: Language model used for recommendations, or None for the
            fixed fallback tips.
        today: Reference date for the reporting period.

    Returns:
        A ``ReportResult`` counting the successful reports and holding up
        to ten collected recommendations.
    """
    logger.info(
        "Starting periodic expense report generation users=%s type=%s insights=%s comparison=%s",
        req.user_ids, req.report_type, req.include_insights, req.include_comparison,
    )

    reports_generated = 0
    all_insights = []

    for user_id in req.user_ids:
        logger.info("Generating report for user_id=%s", user_id)
        result = get_insights(
            db,
            InsightsRequest(
                user_id=user_id,
                analysis_type=req.report_type,
                include_comparison=req.include_comparison,
                include_advice=req.include_insights,
            ),
            agent,
            today=today,
        )

        if not result.success:
            logger.error("Failed to generate report for user_id=%s", user_id)
            continue

        reports_generated += 1
        all_insights.extend(result.recommendations)
        logger.info(
            "Generated report for user_id=%s total_expenses=%.2f total_income=%.2f net_savings=%.2f health=%s",
            user_id,
            result.insights.total_expenses,
            result.insights.total_income,
            result.insights.net_savings,
            result.financial_health.status,
        )

    summary = (
        f"Generated {reports_generated} {req.report_type} expense reports. "
        "Key insights include spending optimization, category analysis, and financial health assessment."
    )
    logger.info("Completed report generation reports=%d insights=%d", reports_generated, len(all_insights))

    return ReportResult(
        success=True,
        reports_generated=reports_generated,
        summary=summary,
        insights=all_insights[:MAX_REPORT_INSIGHTS],
    )


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Generate periodic expense reports")
    parser.add_argument(
        "--user-id",
        dest="user_ids",
        type=int,
        action="append",
        help="User to report on; repeat for several users (default: 1).",
    )
    parser.add_argument("--report-type", choices=["weekly", "monthly"], default="weekly")
    parser.add_argument("--no-insights", action="store_true", help="Skip AI recommendations.")
    parser.add_argument("--no-comparison", action="store_true", help="Skip previous period comparison.")
    return parser.parse_args()


def main() -> None:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    args = parse_args()
    req = ReportRequest(
        user_ids=args.user_ids or [1],
        report_type=args.report_type,
        include_insights=not args.no_insights,
        include_comparison=not args.no_comparison,
    )
    with session_scope() as db:
        result = generate_reports(db, req, get_agent())

    print(result.model_dump_json(indent=2))


if __name__ == "__main__":
    main()
