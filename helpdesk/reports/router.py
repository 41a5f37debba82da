import asyncio
from collections.abc import Awaitable
from datetime import datetime
from typing import TypeVar

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.config import settings
from helpdesk.database import get_db
from helpdesk.dependencies import get_current_admin, get_report_config
from helpdesk.reports.aggregation import (
    ReportConfig,
    dashboard_summary,
    default_trend_window,
    entity_service_matrix,
    service_satisfaction_summary,
    service_trends,
    survey_satisfaction,
    templates_for_category,
    usage_cohort,
)
from helpdesk.reports.cohort import cohort_report
from helpdesk.reports.exceptions import InvalidReportRequest, ReportNotFound
from helpdesk.reports.export import export_filename, render_csv, survey_export
from helpdesk.reports.periods import to_report_tz
from helpdesk.reports.schemas import (
    CohortRow,
    DashboardSummary,
    EntityServiceRow,
    ServiceSatisfaction,
    ServiceTrend,
    SurveySatisfactionReport,
    SurveyTemplateOut,
    UsageCohortRow,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/reports", tags=["reports"], dependencies=[Depends(get_current_admin)])

T = TypeVar("T")


async def _run_report(name: str, builder: Awaitable[T]) -> T:
    """Await a report builder under the request deadline, mapping domain errors to HTTP ones."""
    try:
        return await asyncio.wait_for(builder, timeout=settings.REPORT_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.warning("report_timeout", report=name, timeout=settings.REPORT_TIMEOUT_SECONDS)
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail="Report computation timed out")
    except InvalidReportRequest as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except ReportNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _period_count(periods: int | None, months: int | None, default: int) -> int:
    # "months" is the pre-period-unit name of the same parameter
    if periods is not None:
        return periods
    if months is not None:
        return months
    return default


def _parse_instant(value: str | None) -> datetime | None:
    """Parse an RFC 3339 bound; anything without an explicit offset is ignored."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return to_report_tz(parsed)


@router.get("/summary", response_model=DashboardSummary)
async def summary(
    config: ReportConfig = Depends(get_report_config),
    db: AsyncSession = Depends(get_db),
):
    return await _run_report("summary", dashboard_summary(db, config=config))


@router.get("", response_model=list[ServiceTrend])
async def trends(
    start: str | None = Query(None),
    end: str | None = Query(None),
    config: ReportConfig = Depends(get_report_config),
    db: AsyncSession = Depends(get_db),
):
    window = default_trend_window(tz=config.tz)
    return await _run_report(
        "trends",
        service_trends(db, _parse_instant(start) or window.start, _parse_instant(end) or window.end, config=config),
    )


@router.get("/satisfaction-summary", response_model=list[ServiceSatisfaction])
async def satisfaction_summary(
    period: str = Query("monthly"),
    periods: int | None = Query(None, ge=1),
    months: int | None = Query(None, ge=1),
    config: ReportConfig = Depends(get_report_config),
    db: AsyncSession = Depends(get_db),
):
    return await _run_report(
        "satisfaction_summary",
        service_satisfaction_summary(db, period, _period_count(periods, months, 6), config=config),
    )


@router.get("/cohort", response_model=list[CohortRow])
async def cohort(
    period: str = Query("monthly"),
    periods: int | None = Query(None, ge=1),
    months: int | None = Query(None, ge=1),
    config: ReportConfig = Depends(get_report_config),
    db: AsyncSession = Depends(get_db),
):
    return await _run_report("cohort", cohort_report(db, period, _period_count(periods, months, 5), tz=config.tz))


@router.get("/satisfaction", response_model=SurveySatisfactionReport)
async def satisfaction(
    category_id: str | None = Query(None, alias="categoryId"),
    template_id: str | None = Query(None, alias="templateId"),
    period: str = Query("monthly"),
    periods: int | None = Query(None, ge=1),
    months: int | None = Query(None, ge=1),
    config: ReportConfig = Depends(get_report_config),
    db: AsyncSession = Depends(get_db),
):
    return await _run_report(
        "satisfaction",
        survey_satisfaction(db, category_id, template_id, period, _period_count(periods, months, 5), config=config),
    )


@router.get("/satisfaction/export")
async def satisfaction_export(
    category_id: str | None = Query(None, alias="categoryId"),
    template_id: str | None = Query(None, alias="templateId"),
    period: str = Query("monthly"),
    periods: int | None = Query(None, ge=1),
    months: int | None = Query(None, ge=1),
    config: ReportConfig = Depends(get_report_config),
    db: AsyncSession = Depends(get_db),
):
    export = await _run_report(
        "satisfaction_export",
        survey_export(db, category_id, template_id, period, _period_count(periods, months, 5), config=config),
    )
    filename = export_filename(export, tz=config.tz)
    logger.info("report_export_rendered", filename=filename, responses=len(export.responses))
    return Response(
        content=render_csv(export, tz=config.tz),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Description": "File Transfer",
            "Content-Disposition": f'attachment; filename="{filename}"',
        },
    )


@router.get("/templates", response_model=list[SurveyTemplateOut])
async def templates(
    category_id: str | None = Query(None, alias="categoryId"),
    db: AsyncSession = Depends(get_db),
):
    return await _run_report("templates", templates_for_category(db, category_id))


@router.get("/usage", response_model=list[UsageCohortRow])
async def usage(
    period: str = Query("monthly"),
    periods: int | None = Query(None, ge=1),
    months: int | None = Query(None, ge=1),
    config: ReportConfig = Depends(get_report_config),
    db: AsyncSession = Depends(get_db),
):
    return await _run_report("usage", usage_cohort(db, period, _period_count(periods, months, 5), config=config))


@router.get("/entity-service", response_model=list[EntityServiceRow])
async def entity_service(
    period: str = Query("monthly"),
    periods: int | None = Query(None, ge=1),
    months: int | None = Query(None, ge=1),
    config: ReportConfig = Depends(get_report_config),
    db: AsyncSession = Depends(get_db),
):
    return await _run_report(
        "entity_service",
        entity_service_matrix(db, period, _period_count(periods, months, 5), config=config),
    )
