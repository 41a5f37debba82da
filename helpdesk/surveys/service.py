from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.surveys.models import SurveyTemplate


async def get_template_by_id(db: AsyncSession, template_id: str) -> SurveyTemplate | None:
    """Load a template with its questions in display order."""
    result = await db.execute(select(SurveyTemplate).where(SurveyTemplate.id == template_id))
    return result.scalar_one_or_none()


async def get_templates_by_ids(db: AsyncSession, template_ids: list[str]) -> list[SurveyTemplate]:
    if not template_ids:
        return []
    result = await db.execute(select(SurveyTemplate).where(SurveyTemplate.id.in_(template_ids)))
    return list(result.scalars().all())
