from datetime import datetime, timezone

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from helpdesk.auth.jwt import create_access_token
from helpdesk.categories.models import ServiceCategory
from helpdesk.config import settings
from helpdesk.database import get_db
from helpdesk.main import create_app
from helpdesk.models.base import Base, generate_id
from helpdesk.surveys.models import SurveyQuestion, SurveyResponse, SurveyTemplate
from helpdesk.tickets.models import STATUS_WAITING, Ticket
from helpdesk.users.models import ROLE_ADMIN, ROLE_REGISTERED, User

engine = create_async_engine(settings.TEST_DATABASE_URL, echo=False, poolclass=NullPool)
test_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def db():
    async with test_session_factory() as session:
        yield session


class Seeder:
    """Inserts the rows the report builders read; every call commits."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._tickets = 0

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        return obj

    async def category(
        self,
        category_id: str,
        name: str | None = None,
        guest_allowed: bool = False,
        template_id: str | None = None,
    ) -> ServiceCategory:
        return await self._save(
            ServiceCategory(
                id=category_id,
                name=name or category_id,
                guest_allowed=guest_allowed,
                survey_template_id=template_id,
            )
        )

    async def assign_template(self, category: ServiceCategory, template: SurveyTemplate) -> None:
        category.survey_template_id = template.id
        await self.session.commit()

    async def user(self, role: str = ROLE_REGISTERED, entity: str = "", user_id: str | None = None) -> User:
        user_id = user_id or generate_id()
        return await self._save(User(id=user_id, username=f"user-{user_id[:8]}", name="Test User", role=role, entity=entity))

    async def template(
        self,
        category_id: str | None,
        questions: list[tuple[str, str]],
        template_id: str | None = None,
        title: str = "Survey Layanan",
        updated_at: datetime | None = None,
    ) -> SurveyTemplate:
        template = SurveyTemplate(id=template_id or generate_id(), title=title, category_id=category_id)
        if updated_at is not None:
            template.updated_at = updated_at
        template.questions = [
            SurveyQuestion(id=question_id, text=f"Pertanyaan {question_id}", type=question_type, position=position)
            for position, (question_id, question_type) in enumerate(questions)
        ]
        return await self._save(template)

    async def ticket(
        self,
        category_id: str,
        reporter: User | None = None,
        status: str = STATUS_WAITING,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> Ticket:
        self._tickets += 1
        created_at = created_at or datetime.now(timezone.utc)
        return await self._save(
            Ticket(
                id=f"TKT-{self._tickets:04d}",
                title="Koneksi lambat",
                category_id=category_id,
                status=status,
                reporter_id=reporter.id if reporter else None,
                reporter_name=reporter.name if reporter else "Tamu",
                is_guest=reporter is None or reporter.role != ROLE_REGISTERED,
                created_at=created_at,
                updated_at=updated_at or created_at,
            )
        )

    async def response(
        self,
        ticket: Ticket,
        user_id: str,
        answers=None,
        score: float = 0,
        template_id: str = "",
        created_at: datetime | None = None,
    ) -> SurveyResponse:
        return await self._save(
            SurveyResponse(
                ticket_id=ticket.id,
                user_id=user_id,
                template_id=template_id,
                answers=answers if answers is not None else {},
                score=score,
                created_at=created_at or datetime.now(timezone.utc),
            )
        )


@pytest_asyncio.fixture
async def seeder(db: AsyncSession):
    return Seeder(db)


@pytest_asyncio.fixture
async def client():
    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def admin_user(seeder: Seeder):
    return await seeder.user(role=ROLE_ADMIN, user_id="admin-0001")


@pytest_asyncio.fixture
async def auth_headers(admin_user: User):
    token = create_access_token(admin_user.id, admin_user.role)
    return {"Authorization": f"Bearer {token}"}
