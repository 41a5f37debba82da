from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.categories.service import get_category_by_id, get_category_name_map
from helpdesk.config import settings
from helpdesk.reports import repository
from helpdesk.reports.exceptions import InvalidReportRequest, ReportNotFound
from helpdesk.reports.periods import (
    REPORT_TZ,
    Period,
    PeriodUnit,
    add_periods,
    format_label,
    iter_periods,
    normalize_unit,
    period_range,
    period_start,
    report_now,
)
from helpdesk.reports.schemas import (
    DashboardSummary,
    EntityServiceRow,
    ServiceSatisfaction,
    ServiceTrend,
    SurveyQuestionOut,
    SurveySatisfactionReport,
    SurveySatisfactionRow,
    SurveyTemplateOut,
    UsageCohortRow,
)
from helpdesk.reports.scoring import decode_answers, normalize_legacy_score, score_answer
from helpdesk.surveys.models import SurveyQuestion, SurveyTemplate
from helpdesk.surveys.service import get_template_by_id, get_templates_by_ids

logger = structlog.get_logger()

ALL_CATEGORIES_LABEL = "Semua Kategori"
TREND_WINDOW_DAYS = 30


@dataclass(frozen=True)
class ReportConfig:
    """Knobs shared by every aggregate report."""

    tz: tzinfo = REPORT_TZ
    excluded_category_ids: frozenset[str] = field(default_factory=frozenset)


def default_report_config() -> ReportConfig:
    return ReportConfig(tz=REPORT_TZ, excluded_category_ids=frozenset(settings.REPORT_EXCLUDED_CATEGORY_IDS))


def question_out(question: SurveyQuestion) -> SurveyQuestionOut:
    options = question.options if isinstance(question.options, list) else []
    return SurveyQuestionOut(
        id=question.id,
        text=question.text,
        type=question.type,
        options=[str(option) for option in options],
    )


def template_out(template: SurveyTemplate) -> SurveyTemplateOut:
    return SurveyTemplateOut(
        id=template.id,
        title=template.title,
        description=template.description,
        category_id=template.category_id,
        questions=[question_out(question) for question in template.questions],
        created_at=template.created_at,
        updated_at=template.updated_at,
    )


async def resolve_template(db: AsyncSession, category_id: str | None, template_id: str | None) -> SurveyTemplate:
    """Pick the template named by id, or else the one assigned to the category."""
    selected = (template_id or "").strip()
    if not selected:
        category = await get_category_by_id(db, category_id or "")
        if category is None:
            raise ReportNotFound(f"Category {category_id!r} not found")
        if not category.survey_template_id:
            raise ReportNotFound(f"Category {category_id!r} has no survey template")
        selected = category.survey_template_id

    template = await get_template_by_id(db, selected)
    if template is None:
        raise ReportNotFound(f"Survey template {selected!r} not found")
    return template


async def resolve_category_name(db: AsyncSession, category_id: str) -> str:
    category = await get_category_by_id(db, category_id)
    if category is not None and category.name:
        return category.name
    return category_id


async def service_satisfaction_summary(
    db: AsyncSession,
    period: str,
    periods: int = 6,
    now: datetime | None = None,
    config: ReportConfig = ReportConfig(),
) -> list[ServiceSatisfaction]:
    """Average score per category, with each category's share of the volume-weighted total."""
    window = period_range(normalize_unit(period), periods, now, config.tz)
    rows = await repository.list_scored_responses_by_category(
        db, window.start, window.end, config.excluded_category_ids
    )

    sums: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)
    for row in rows:
        # Rescue per response so old 1-5 scores never average against 0-100 ones
        sums[row.category_id] += normalize_legacy_score(row.score)
        counts[row.category_id] += 1

    averages = {category_id: sums[category_id] / counts[category_id] for category_id in counts}
    total_weighted = sum(averages[category_id] * counts[category_id] for category_id in averages)
    names = await get_category_name_map(db)

    result = []
    for category_id in sorted(averages):
        avg_score = averages[category_id]
        percentage = 0.0
        if total_weighted > 0:
            percentage = avg_score * counts[category_id] / total_weighted * 100
        result.append(
            ServiceSatisfaction(
                category_id=category_id,
                label=names.get(category_id) or category_id,
                avg_score=avg_score,
                responses=counts[category_id],
                percentage=percentage,
            )
        )
    return result


async def survey_satisfaction(
    db: AsyncSession,
    category_id: str | None,
    template_id: str | None,
    period: str,
    periods: int = 5,
    now: datetime | None = None,
    config: ReportConfig = ReportConfig(),
) -> SurveySatisfactionReport:
    category_id = (category_id or "").strip()
    if not category_id and not (template_id or "").strip():
        raise InvalidReportRequest("categoryId or templateId is required")

    template = await resolve_template(db, category_id, template_id)
    unit = normalize_unit(period)
    window = period_range(unit, periods, now, config.tz)

    responses = await repository.list_responses_for_report(
        db, window.start, window.end, category_id=category_id, template_id=template.id
    )

    sums: dict[str, float] = defaultdict(float)
    score_counts: dict[str, int] = defaultdict(int)
    answer_counts: dict[str, int] = defaultdict(int)
    skipped = 0
    for response in responses:
        answers = decode_answers(response.answers)
        if answers is None:
            skipped += 1
            continue
        for question in template.questions:
            if question.id not in answers:
                continue
            answer_counts[question.id] += 1
            score = score_answer(answers[question.id], question.type)
            if score is not None:
                sums[question.id] += score
                score_counts[question.id] += 1

    if skipped:
        logger.debug("report_undecodable_answers_skipped", template_id=template.id, skipped=skipped)

    rows = [
        SurveySatisfactionRow(
            question_id=question.id,
            question=question.text,
            type=question.type,
            avg_score=sums[question.id] / score_counts[question.id] if score_counts[question.id] else 0.0,
            responses=answer_counts[question.id],
        )
        for question in template.questions
    ]

    return SurveySatisfactionReport(
        template_id=template.id,
        template=template.title,
        category_id=category_id,
        category=await resolve_category_name(db, category_id) if category_id else ALL_CATEGORIES_LABEL,
        period=unit.value,
        start=window.start,
        end=window.end,
        rows=rows,
    )


async def entity_service_matrix(
    db: AsyncSession,
    period: str,
    periods: int = 5,
    now: datetime | None = None,
    config: ReportConfig = ReportConfig(),
) -> list[EntityServiceRow]:
    """Ticket and survey counts for every (entity, category) pair, zeros included."""
    window = period_range(normalize_unit(period), periods, now, config.tz)
    excluded = config.excluded_category_ids

    ticket_counts: dict[tuple[str, str], int] = {}
    for row in await repository.list_registered_ticket_totals(db, window.start, window.end, excluded):
        ticket_counts[(row.entity, row.category_id)] = row.total

    survey_counts: dict[tuple[str, str], int] = {}
    for row in await repository.list_registered_response_totals(db, window.start, window.end, excluded):
        survey_counts[(row.entity, row.category_id)] = row.total

    categories = await repository.list_report_categories(db, excluded)

    entities = {entity for entity, _ in ticket_counts}
    entities.update(entity for entity, _ in survey_counts)
    entities.update(await repository.list_registered_entities(db))

    return [
        EntityServiceRow(
            entity=entity,
            category_id=category.id,
            category=category.name,
            tickets=ticket_counts.get((entity, category.id), 0),
            surveys=survey_counts.get((entity, category.id), 0),
        )
        for entity in sorted(entities)
        for category in categories
    ]


async def usage_cohort(
    db: AsyncSession,
    period: str,
    periods: int = 5,
    now: datetime | None = None,
    config: ReportConfig = ReportConfig(),
) -> list[UsageCohortRow]:
    unit = normalize_unit(period)
    rows = []
    for bucket in iter_periods(unit, periods, now, config.tz):
        tickets = await repository.count_tickets_in_range(db, bucket.start, bucket.end)
        surveys = await repository.count_responses_in_range(db, bucket.start, bucket.end)
        rows.append(UsageCohortRow(label=format_label(bucket.start, unit), tickets=tickets, surveys=surveys))
    return rows


async def dashboard_summary(
    db: AsyncSession,
    now: datetime | None = None,
    config: ReportConfig = ReportConfig(),
) -> DashboardSummary:
    total_tickets = await repository.count_tickets(db)
    open_tickets = await repository.count_open_tickets(db)

    month_start = period_start(report_now(now, config.tz), PeriodUnit.MONTHLY, config.tz)
    resolved = await repository.count_resolved_tickets_in_range(
        db, month_start, add_periods(month_start, PeriodUnit.MONTHLY, 1)
    )

    scores = [normalize_legacy_score(score) for score in await repository.list_positive_scores(db)]
    avg_rating = sum(scores) / len(scores) if scores else 0.0

    return DashboardSummary(
        total_tickets=total_tickets,
        open_tickets=open_tickets,
        resolved_this_period=resolved,
        avg_rating=avg_rating,
    )


def default_trend_window(now: datetime | None = None, tz: tzinfo = REPORT_TZ) -> Period:
    """The last 30 days, today included."""
    today = period_start(report_now(now, tz), PeriodUnit.DAILY, tz)
    return Period(start=today - timedelta(days=TREND_WINDOW_DAYS - 1), end=today + timedelta(days=1))


async def service_trends(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    config: ReportConfig = ReportConfig(),
) -> list[ServiceTrend]:
    """Share of tickets per category created in ``[start, end)``."""
    rows = await repository.list_ticket_totals_by_category(db, start, end, config.excluded_category_ids)
    overall = sum(row.total for row in rows)
    if overall == 0:
        return []

    names = await get_category_name_map(db)
    return [
        ServiceTrend(
            category_id=row.category_id,
            label=names.get(row.category_id) or row.category_id,
            percentage=row.total / overall * 100,
        )
        for row in rows
    ]


async def templates_for_category(db: AsyncSession, category_id: str | None) -> list[SurveyTemplateOut]:
    """Templates a category is or was surveyed with: the assigned one first, then most recently updated."""
    category_id = (category_id or "").strip()
    if not category_id:
        raise InvalidReportRequest("categoryId is required")

    category = await get_category_by_id(db, category_id)
    if category is None:
        raise ReportNotFound(f"Category {category_id!r} not found")

    template_ids = set(await repository.list_used_template_ids(db, category_id))
    if category.survey_template_id:
        template_ids.add(category.survey_template_id)

    templates = await get_templates_by_ids(db, sorted(template_ids))
    assigned = [t for t in templates if t.id == category.survey_template_id]
    others = sorted(
        (t for t in templates if t.id != category.survey_template_id),
        key=lambda t: t.updated_at,
        reverse=True,
    )
    return [template_out(template) for template in assigned + others]
