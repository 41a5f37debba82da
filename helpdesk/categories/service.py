from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.categories.models import ServiceCategory


async def get_category_by_id(db: AsyncSession, category_id: str) -> ServiceCategory | None:
    result = await db.execute(select(ServiceCategory).where(ServiceCategory.id == category_id))
    return result.scalar_one_or_none()


async def list_categories(db: AsyncSession) -> list[ServiceCategory]:
    result = await db.execute(select(ServiceCategory).order_by(ServiceCategory.name))
    return list(result.scalars().all())


async def get_category_name_map(db: AsyncSession) -> dict[str, str]:
    return {category.id: category.name for category in await list_categories(db)}
