"""Read-only queries backing the report builders.

Window bounds are converted to UTC before binding: timestamps are stored in
UTC and SQLite drops the offset of bound values.
"""

from collections.abc import Collection
from datetime import datetime, timezone

from sqlalchemy import Row, func, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.categories.models import ServiceCategory
from helpdesk.surveys.models import SurveyResponse
from helpdesk.tickets.models import STATUS_RESOLVED, TERMINAL_STATUSES, Ticket
from helpdesk.users.models import ROLE_REGISTERED, User


def _utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(timezone.utc)


def _within(column, start: datetime, end: datetime):
    return (column >= _utc(start)) & (column < _utc(end))


def _without_categories(column, excluded: Collection[str]):
    if not excluded:
        return true()
    return column.not_in(list(excluded))


async def list_responses_in_range(db: AsyncSession, start: datetime, end: datetime) -> list[SurveyResponse]:
    result = await db.execute(
        select(SurveyResponse).where(_within(SurveyResponse.created_at, start, end))
    )
    return list(result.scalars().all())


async def list_active_user_ids(
    db: AsyncSession,
    user_ids: Collection[str],
    start: datetime,
    end: datetime,
) -> list[str]:
    """Distinct users from ``user_ids`` with at least one response in the window."""
    if not user_ids:
        return []
    result = await db.execute(
        select(SurveyResponse.user_id)
        .where(
            SurveyResponse.user_id.in_(list(user_ids)),
            _within(SurveyResponse.created_at, start, end),
        )
        .distinct()
    )
    return list(result.scalars().all())


async def list_responses_for_report(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    category_id: str | None = None,
    template_id: str | None = None,
    ascending: bool = False,
) -> list[SurveyResponse]:
    stmt = (
        select(SurveyResponse)
        .join(Ticket, Ticket.id == SurveyResponse.ticket_id)
        .where(_within(SurveyResponse.created_at, start, end))
    )
    if category_id:
        stmt = stmt.where(Ticket.category_id == category_id)
    if template_id:
        stmt = stmt.where(SurveyResponse.template_id == template_id)
    order = SurveyResponse.created_at.asc() if ascending else SurveyResponse.created_at.desc()
    result = await db.execute(stmt.order_by(order, SurveyResponse.id))
    return list(result.scalars().all())


async def list_used_template_ids(db: AsyncSession, category_id: str) -> list[str]:
    result = await db.execute(
        select(SurveyResponse.template_id)
        .join(Ticket, Ticket.id == SurveyResponse.ticket_id)
        .where(Ticket.category_id == category_id, SurveyResponse.template_id != "")
        .distinct()
    )
    return [template_id for template_id in result.scalars().all() if template_id]


async def list_ticket_totals_by_category(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    excluded_category_ids: Collection[str] = (),
) -> list[Row]:
    total = func.count().label("total")
    result = await db.execute(
        select(Ticket.category_id, total)
        .where(
            _within(Ticket.created_at, start, end),
            _without_categories(Ticket.category_id, excluded_category_ids),
        )
        .group_by(Ticket.category_id)
        .order_by(total.desc(), Ticket.category_id)
    )
    return list(result.all())


async def list_scored_responses_by_category(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    excluded_category_ids: Collection[str] = (),
) -> list[Row]:
    """``(category_id, score)`` for every positive-score response in the window."""
    result = await db.execute(
        select(Ticket.category_id, SurveyResponse.score)
        .select_from(SurveyResponse)
        .join(Ticket, Ticket.id == SurveyResponse.ticket_id)
        .where(
            _within(SurveyResponse.created_at, start, end),
            SurveyResponse.score > 0,
            _without_categories(Ticket.category_id, excluded_category_ids),
        )
    )
    return list(result.all())


async def count_tickets(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Ticket))
    return result.scalar_one()


async def count_open_tickets(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count()).select_from(Ticket).where(Ticket.status.not_in(TERMINAL_STATUSES))
    )
    return result.scalar_one()


async def count_resolved_tickets_in_range(db: AsyncSession, start: datetime, end: datetime) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Ticket)
        .where(Ticket.status == STATUS_RESOLVED, _within(Ticket.updated_at, start, end))
    )
    return result.scalar_one()


async def list_positive_scores(db: AsyncSession) -> list[float]:
    result = await db.execute(select(SurveyResponse.score).where(SurveyResponse.score > 0))
    return list(result.scalars().all())


async def count_tickets_in_range(db: AsyncSession, start: datetime, end: datetime) -> int:
    result = await db.execute(
        select(func.count()).select_from(Ticket).where(_within(Ticket.created_at, start, end))
    )
    return result.scalar_one()


async def count_responses_in_range(db: AsyncSession, start: datetime, end: datetime) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(SurveyResponse)
        .where(_within(SurveyResponse.created_at, start, end))
    )
    return result.scalar_one()


async def list_registered_ticket_totals(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    excluded_category_ids: Collection[str] = (),
) -> list[Row]:
    """``(entity, category_id, total)`` of tickets reported by registered users."""
    result = await db.execute(
        select(User.entity, Ticket.category_id, func.count().label("total"))
        .select_from(Ticket)
        .join(User, User.id == Ticket.reporter_id)
        .where(
            User.role == ROLE_REGISTERED,
            _within(Ticket.created_at, start, end),
            _without_categories(Ticket.category_id, excluded_category_ids),
        )
        .group_by(User.entity, Ticket.category_id)
    )
    return list(result.all())


async def list_registered_response_totals(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    excluded_category_ids: Collection[str] = (),
) -> list[Row]:
    """``(entity, category_id, total)`` of survey responses submitted by registered users."""
    result = await db.execute(
        select(User.entity, Ticket.category_id, func.count().label("total"))
        .select_from(SurveyResponse)
        .join(User, User.id == SurveyResponse.user_id)
        .join(Ticket, Ticket.id == SurveyResponse.ticket_id)
        .where(
            User.role == ROLE_REGISTERED,
            _within(SurveyResponse.created_at, start, end),
            _without_categories(Ticket.category_id, excluded_category_ids),
        )
        .group_by(User.entity, Ticket.category_id)
    )
    return list(result.all())


async def list_registered_entities(db: AsyncSession) -> list[str]:
    result = await db.execute(
        select(User.entity)
        .where(User.role == ROLE_REGISTERED, User.entity != "")
        .distinct()
        .order_by(User.entity)
    )
    return list(result.scalars().all())


async def list_report_categories(
    db: AsyncSession,
    excluded_category_ids: Collection[str] = (),
) -> list[ServiceCategory]:
    """Categories open to registered users, minus the excluded ones, by name."""
    result = await db.execute(
        select(ServiceCategory)
        .where(
            ServiceCategory.guest_allowed.is_(False),
            _without_categories(ServiceCategory.id, excluded_category_ids),
        )
        .order_by(ServiceCategory.name)
    )
    return list(result.scalars().all())
