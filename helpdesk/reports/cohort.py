"""Survey cohorts and their forward retention.

A cohort is the set of distinct users who submitted at least one survey
response in a period. Retention at step ``k`` is the share of that cohort
that responded again ``k`` periods later. Steps are measured even when they
fall after "now"; such windows are empty and read as 0%.
"""

from collections.abc import Iterable
from datetime import datetime, tzinfo

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.reports import repository
from helpdesk.reports.periods import REPORT_TZ, add_periods, format_label, iter_periods, normalize_unit
from helpdesk.reports.schemas import CohortRow
from helpdesk.reports.scoring import effective_response_score
from helpdesk.surveys.models import SurveyResponse

logger = structlog.get_logger()


def cohort_scores(responses: Iterable[SurveyResponse]) -> tuple[float, float]:
    """Return ``(avg_score, response_rate)`` for one bucket of responses.

    Responses whose effective score is 0 are left out of the average and
    count against the response rate.
    """
    total = 0.0
    scored = 0
    seen = 0
    for response in responses:
        seen += 1
        score = effective_response_score(response.score, response.answers)
        if score > 0:
            total += score
            scored += 1
    if seen == 0:
        return 0.0, 0.0
    avg_score = total / scored if scored else 0.0
    return avg_score, scored / seen * 100


def retention_percent(active: int, cohort_size: int) -> int:
    if cohort_size <= 0:
        return 0
    return int(active / cohort_size * 100)


async def cohort_report(
    db: AsyncSession,
    period: str,
    periods: int,
    now: datetime | None = None,
    tz: tzinfo = REPORT_TZ,
) -> list[CohortRow]:
    unit = normalize_unit(period)
    buckets = list(iter_periods(unit, periods, now, tz))

    rows: list[CohortRow] = []
    for bucket in buckets:
        responses = await repository.list_responses_in_range(db, bucket.start, bucket.end)
        users = sorted({response.user_id for response in responses})
        label = format_label(bucket.start, unit)

        if not users:
            rows.append(CohortRow(label=label, users=0, retention=[0] * len(buckets), avg_score=0, response_rate=0))
            continue

        avg_score, response_rate = cohort_scores(responses)

        retention = [100]
        for step in range(1, len(buckets)):
            step_start = add_periods(bucket.start, unit, step)
            step_end = add_periods(step_start, unit, 1)
            active = await repository.list_active_user_ids(db, users, step_start, step_end)
            retention.append(retention_percent(len(active), len(users)))

        rows.append(
            CohortRow(
                label=label,
                users=len(users),
                retention=retention,
                avg_score=avg_score,
                response_rate=response_rate,
            )
        )

    logger.info("report_cohort_built", unit=unit.value, periods=len(buckets))
    return rows
