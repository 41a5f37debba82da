"""Raw survey response export.

Columns are fixed once from the template's ordered questions, then one row
is produced per response, oldest first.
"""

import csv
import io
from collections.abc import Iterator
from datetime import datetime, tzinfo
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.reports import repository
from helpdesk.reports.aggregation import (
    ReportConfig,
    question_out,
    resolve_category_name,
    resolve_template,
)
from helpdesk.reports.exceptions import InvalidReportRequest
from helpdesk.reports.periods import REPORT_TZ, normalize_unit, period_range, report_now, to_report_tz
from helpdesk.reports.schemas import ExportResponse, SurveyExport
from helpdesk.reports.scoring import decode_answers

FIXED_COLUMNS = ["Kategori", "Template", "Ticket ID", "User ID", "Tanggal", "Skor(0-100)"]
YES_LABEL = "Ya"
NO_LABEL = "Tidak"


async def survey_export(
    db: AsyncSession,
    category_id: str | None,
    template_id: str | None,
    period: str,
    periods: int = 5,
    now: datetime | None = None,
    config: ReportConfig = ReportConfig(),
) -> SurveyExport:
    category_id = (category_id or "").strip()
    if not category_id:
        raise InvalidReportRequest("categoryId is required")

    template = await resolve_template(db, category_id, template_id)
    unit = normalize_unit(period)
    window = period_range(unit, periods, now, config.tz)

    responses = await repository.list_responses_for_report(
        db, window.start, window.end, category_id=category_id, template_id=template.id, ascending=True
    )

    return SurveyExport(
        template_id=template.id,
        template=template.title,
        category_id=category_id,
        category=await resolve_category_name(db, category_id),
        period=unit.value,
        start=window.start,
        end=window.end,
        questions=[question_out(question) for question in template.questions],
        responses=[
            ExportResponse(
                id=response.id,
                ticket_id=response.ticket_id,
                user_id=response.user_id,
                score=response.score or 0.0,
                created_at=response.created_at,
                answers=decode_answers(response.answers),
            )
            for response in responses
        ],
    )


def format_answer_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return YES_LABEL if value else NO_LABEL
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        # shortest round-trip digits, never in exponent form
        return format(Decimal(repr(value)), "f")
    return str(value)


def export_header(export: SurveyExport) -> list[str]:
    header = list(FIXED_COLUMNS)
    header.extend(f"Q{index} - {question.text}" for index, question in enumerate(export.questions, start=1))
    return header


def export_rows(export: SurveyExport, tz: tzinfo = REPORT_TZ) -> Iterator[list[str]]:
    """Yield the header followed by one row per response."""
    question_ids = [question.id for question in export.questions]
    yield export_header(export)

    for response in export.responses:
        answers = response.answers or {}
        row = [
            export.category,
            export.template,
            response.ticket_id,
            response.user_id,
            to_report_tz(response.created_at, tz).isoformat(timespec="seconds"),
            f"{response.score:.2f}",
        ]
        row.extend(format_answer_value(answers.get(question_id)) for question_id in question_ids)
        yield row


def render_csv(export: SurveyExport, tz: tzinfo = REPORT_TZ) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerows(export_rows(export, tz))
    return buffer.getvalue()


def _filename_part(value: str) -> str:
    if not value:
        return "all"
    for char in (" ", "/", "\\"):
        value = value.replace(char, "_")
    return value


def export_filename(export: SurveyExport, now: datetime | None = None, tz: tzinfo = REPORT_TZ) -> str:
    stamp = report_now(now, tz).strftime("%Y%m%d_%H%M%S")
    return f"survey_export_{_filename_part(export.category_id)}_{_filename_part(export.template_id)}_{stamp}.csv"
