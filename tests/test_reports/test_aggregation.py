from datetime import datetime, timezone

import pytest

from helpdesk.reports.aggregation import (
    ALL_CATEGORIES_LABEL,
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
from helpdesk.reports.exceptions import InvalidReportRequest, ReportNotFound
from helpdesk.reports.periods import REPORT_TZ
from helpdesk.tickets.models import STATUS_IN_PROGRESS, STATUS_RESOLVED
from helpdesk.users.models import ROLE_GUEST

NOW = datetime(2026, 2, 18, 5, 0, tzinfo=timezone.utc)
CONFIG = ReportConfig(excluded_category_ids=frozenset({"guest-sso", "lainnya"}))


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_satisfaction_summary_weights_by_volume(db, seeder):
    await seeder.category("internet", "Jaringan Internet")
    await seeder.category("siakad", "SIAKAD")
    await seeder.category("guest-sso", "Registrasi SSO", guest_allowed=True)
    internet = await seeder.ticket("internet")
    siakad = await seeder.ticket("siakad")
    guest = await seeder.ticket("guest-sso")

    when = utc(2026, 2, 10, 3)
    await seeder.response(internet, "u1", score=80, created_at=when)
    await seeder.response(internet, "u2", score=4, created_at=when)
    await seeder.response(internet, "u3", score=0, created_at=when)
    await seeder.response(siakad, "u1", score=60, created_at=when)
    await seeder.response(guest, "u4", score=100, created_at=when)

    rows = await service_satisfaction_summary(db, "monthly", 6, now=NOW, config=CONFIG)

    assert [row.category_id for row in rows] == ["internet", "siakad"]
    internet_row, siakad_row = rows
    assert internet_row.label == "Jaringan Internet"
    assert internet_row.avg_score == pytest.approx(80)
    assert internet_row.responses == 2
    assert internet_row.percentage == pytest.approx(160 / 220 * 100)
    assert siakad_row.percentage == pytest.approx(60 / 220 * 100)
    assert sum(row.percentage for row in rows) == pytest.approx(100)


@pytest.mark.asyncio
async def test_satisfaction_summary_empty(db):
    assert await service_satisfaction_summary(db, "monthly", now=NOW, config=CONFIG) == []


async def _satisfaction_fixture(seeder):
    internet = await seeder.category("internet", "Jaringan Internet")
    await seeder.category("siakad", "SIAKAD")
    template = await seeder.template(
        "internet",
        [("sq-1", "likert"), ("sq-2", "text"), ("sq-3", "yesNo")],
        template_id="tpl-internet",
        title="Survey Internet",
    )
    await seeder.assign_template(internet, template)

    ticket = await seeder.ticket("internet")
    other = await seeder.ticket("siakad")
    when = utc(2026, 2, 10, 3)
    await seeder.response(ticket, "u1", {"sq-1": 5, "sq-2": "cepat"}, template_id=template.id, created_at=when)
    await seeder.response(ticket, "u2", {"sq-1": 3}, template_id=template.id, created_at=when)
    await seeder.response(ticket, "u3", {"sq-1": 1, "sq-3": "ya"}, template_id=template.id, created_at=when)
    await seeder.response(ticket, "u4", "not json", template_id=template.id, created_at=when)
    await seeder.response(other, "u5", {"sq-1": 1}, template_id=template.id, created_at=when)
    await seeder.response(ticket, "u6", {"sq-1": 1}, template_id=template.id, created_at=utc(2025, 10, 1))
    return template


@pytest.mark.asyncio
async def test_survey_satisfaction_by_category(db, seeder):
    await _satisfaction_fixture(seeder)

    report = await survey_satisfaction(db, "internet", None, "monthly", 3, now=NOW, config=CONFIG)

    assert report.template_id == "tpl-internet"
    assert report.template == "Survey Internet"
    assert report.category == "Jaringan Internet"
    assert report.period == "monthly"
    assert report.start == datetime(2025, 12, 1, tzinfo=REPORT_TZ)
    assert report.end == datetime(2026, 3, 1, tzinfo=REPORT_TZ)

    rows = {row.question_id: row for row in report.rows}
    assert [row.question_id for row in report.rows] == ["sq-1", "sq-2", "sq-3"]
    assert rows["sq-1"].avg_score == pytest.approx(60)
    assert rows["sq-1"].responses == 3
    assert rows["sq-2"].avg_score == 0
    assert rows["sq-2"].responses == 1
    assert rows["sq-3"].avg_score == pytest.approx(100)
    assert rows["sq-3"].responses == 1


@pytest.mark.asyncio
async def test_survey_satisfaction_by_template_spans_categories(db, seeder):
    await _satisfaction_fixture(seeder)

    report = await survey_satisfaction(db, None, "tpl-internet", "monthly", 3, now=NOW, config=CONFIG)

    assert report.category == ALL_CATEGORIES_LABEL
    assert report.category_id == ""
    sq1 = report.rows[0]
    assert sq1.responses == 4
    assert sq1.avg_score == pytest.approx((100 + 60 + 20 + 20) / 4)


@pytest.mark.asyncio
async def test_survey_satisfaction_requires_a_filter(db):
    with pytest.raises(InvalidReportRequest):
        await survey_satisfaction(db, " ", "", "monthly", now=NOW)


@pytest.mark.asyncio
async def test_survey_satisfaction_missing_template(db, seeder):
    await seeder.category("siakad", "SIAKAD")

    with pytest.raises(ReportNotFound):
        await survey_satisfaction(db, "siakad", None, "monthly", now=NOW)
    with pytest.raises(ReportNotFound):
        await survey_satisfaction(db, "unknown", None, "monthly", now=NOW)
    with pytest.raises(ReportNotFound):
        await survey_satisfaction(db, "siakad", "tpl-missing", "monthly", now=NOW)


@pytest.mark.asyncio
async def test_entity_service_matrix_is_dense(db, seeder):
    await seeder.category("internet", "Jaringan Internet")
    await seeder.category("siakad", "SIAKAD")
    await seeder.category("guest-sso", "Registrasi SSO", guest_allowed=True)
    await seeder.category("lainnya", "Lainnya")

    fmipa = await seeder.user(entity="FMIPA")
    feb = await seeder.user(entity="FEB")
    await seeder.user(entity="FT")
    guest = await seeder.user(role=ROLE_GUEST, entity="FISIP")

    when = utc(2026, 2, 10, 3)
    first = await seeder.ticket("internet", reporter=fmipa, created_at=when)
    await seeder.ticket("internet", reporter=fmipa, created_at=when)
    await seeder.ticket("siakad", reporter=feb, created_at=when)
    await seeder.ticket("internet", reporter=guest, created_at=when)
    await seeder.ticket("lainnya", reporter=fmipa, created_at=when)
    await seeder.response(first, fmipa.id, {"q": 5}, score=100, created_at=when)

    rows = await entity_service_matrix(db, "monthly", 3, now=NOW, config=CONFIG)

    assert len(rows) == 3 * 2
    assert [(row.entity, row.category) for row in rows] == [
        ("FEB", "Jaringan Internet"),
        ("FEB", "SIAKAD"),
        ("FMIPA", "Jaringan Internet"),
        ("FMIPA", "SIAKAD"),
        ("FT", "Jaringan Internet"),
        ("FT", "SIAKAD"),
    ]
    cells = {(row.entity, row.category_id): row for row in rows}
    assert cells[("FMIPA", "internet")].tickets == 2
    assert cells[("FMIPA", "internet")].surveys == 1
    assert cells[("FEB", "siakad")].tickets == 1
    assert cells[("FEB", "siakad")].surveys == 0
    assert cells[("FT", "internet")].tickets == 0


@pytest.mark.asyncio
async def test_usage_cohort(db, seeder):
    await seeder.category("internet")
    # 17:30 UTC on Nov 30 is already December in WIB
    await seeder.ticket("internet", created_at=utc(2025, 11, 30, 17, 30))
    first = await seeder.ticket("internet", created_at=utc(2026, 2, 3))
    await seeder.ticket("internet", created_at=utc(2026, 2, 4))
    await seeder.ticket("internet", created_at=utc(2025, 11, 1))
    await seeder.response(first, "u1", score=80, created_at=utc(2026, 2, 5))

    rows = await usage_cohort(db, "monthly", 3, now=NOW)

    assert [(row.label, row.tickets, row.surveys) for row in rows] == [
        ("Dec 2025", 1, 0),
        ("Jan 2026", 0, 0),
        ("Feb 2026", 2, 1),
    ]


@pytest.mark.asyncio
async def test_dashboard_summary(db, seeder):
    await seeder.category("internet")
    resolved = await seeder.ticket(
        "internet", status=STATUS_RESOLVED, created_at=utc(2026, 1, 30), updated_at=utc(2026, 2, 5)
    )
    await seeder.ticket("internet", status=STATUS_RESOLVED, created_at=utc(2026, 1, 2), updated_at=utc(2026, 1, 20))
    await seeder.ticket("internet", status=STATUS_IN_PROGRESS, created_at=utc(2026, 2, 1))

    for score in (80, 4, 0, 50):
        await seeder.response(resolved, "u1", score=score)

    summary = await dashboard_summary(db, now=NOW, config=CONFIG)

    assert summary.total_tickets == 3
    assert summary.open_tickets == 1
    assert summary.resolved_this_period == 1
    assert summary.avg_rating == pytest.approx(70)


@pytest.mark.asyncio
async def test_dashboard_summary_empty(db):
    summary = await dashboard_summary(db, now=NOW)
    assert summary.total_tickets == 0
    assert summary.avg_rating == 0


@pytest.mark.asyncio
async def test_service_trends(db, seeder):
    await seeder.category("internet", "Jaringan Internet")
    await seeder.category("siakad", "SIAKAD")
    await seeder.category("guest-sso", guest_allowed=True)
    when = utc(2026, 2, 10)
    for category_id in ("internet", "internet", "internet", "siakad", "guest-sso", "guest-sso"):
        await seeder.ticket(category_id, created_at=when)

    trends = await service_trends(db, utc(2026, 2, 1), utc(2026, 3, 1), config=CONFIG)

    assert [(trend.category_id, trend.label) for trend in trends] == [
        ("internet", "Jaringan Internet"),
        ("siakad", "SIAKAD"),
    ]
    assert trends[0].percentage == pytest.approx(75)
    assert trends[1].percentage == pytest.approx(25)
    assert await service_trends(db, utc(2025, 1, 1), utc(2025, 2, 1), config=CONFIG) == []


def test_default_trend_window_covers_thirty_days():
    window = default_trend_window(now=NOW)
    assert window.end == datetime(2026, 2, 19, tzinfo=REPORT_TZ)
    assert window.start == datetime(2026, 1, 20, tzinfo=REPORT_TZ)
    assert NOW in window


@pytest.mark.asyncio
async def test_templates_for_category(db, seeder):
    internet = await seeder.category("internet", "Jaringan Internet")
    old = await seeder.template("internet", [("old-q", "likert")], template_id="tpl-old", updated_at=utc(2025, 6, 1))
    other = await seeder.template("internet", [("other-q", "yesNo")], template_id="tpl-other", updated_at=utc(2025, 9, 1))
    current = await seeder.template("internet", [("new-q", "likert4")], template_id="tpl-new")
    await seeder.assign_template(internet, current)

    ticket = await seeder.ticket("internet")
    await seeder.response(ticket, "u1", {"old-q": 4}, template_id=old.id)
    await seeder.response(ticket, "u2", {"other-q": True}, template_id=other.id)
    await seeder.response(ticket, "u3", {"x": 1})

    templates = await templates_for_category(db, "internet")

    assert [template.id for template in templates] == ["tpl-new", "tpl-other", "tpl-old"]
    assert templates[0].questions[0].id == "new-q"


@pytest.mark.asyncio
async def test_templates_for_category_errors(db):
    with pytest.raises(InvalidReportRequest):
        await templates_for_category(db, "")
    with pytest.raises(ReportNotFound):
        await templates_for_category(db, "unknown")
