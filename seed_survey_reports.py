"""
Seed a small helpdesk dataset for exercising the survey reports locally.

Creates:
- service categories (including the guest-intake ones excluded from reports)
- registered users spread over a few faculties, plus one admin
- one survey template per registered category with mixed question types
- ~4 months of tickets and survey responses, some with legacy 1-5 scores

Prints a bearer token for the admin user when done.
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone

from helpdesk.auth.jwt import create_access_token
from helpdesk.categories.models import ServiceCategory
from helpdesk.database import async_session_factory, engine
from helpdesk.models.base import Base, generate_id
from helpdesk.reports.scoring import score_answer
from helpdesk.surveys.models import QuestionType, SurveyQuestion, SurveyResponse, SurveyTemplate
from helpdesk.tickets.models import STATUS_IN_PROGRESS, STATUS_RESOLVED, STATUS_WAITING, Ticket
from helpdesk.users.models import ROLE_ADMIN, ROLE_REGISTERED, User

NOW = datetime.now(timezone.utc)
ADMIN_ID = "00000000-0000-0000-0000-000000000001"

CATEGORIES = [
    ("internet", "Jaringan Internet", False),
    ("siakad", "SIAKAD", False),
    ("website", "Website", False),
    ("sistem-informasi", "Sistem Informasi", False),
    ("lainnya", "Lainnya", False),
    ("guest-password", "Lupa Password SSO", True),
    ("guest-sso", "Registrasi SSO", True),
    ("guest-email", "Registrasi Email @unila.ac.id", True),
]

ENTITIES = ["FMIPA", "FEB", "FT", "FH", "FKIP"]

QUESTIONS = [
    ("Apakah masalah Anda terselesaikan?", QuestionType.YES_NO),
    ("Seberapa puas Anda dengan layanan?", QuestionType.LIKERT),
    ("Kecepatan respon petugas", QuestionType.LIKERT_4_SATISFACTION),
    ("Saran perbaikan", QuestionType.TEXT),
]


def _answer(question_type: QuestionType):
    if question_type == QuestionType.YES_NO:
        return random.random() < 0.8
    if question_type == QuestionType.LIKERT:
        return random.choice([3, 4, 4, 5, 5])
    if question_type == QuestionType.LIKERT_4_SATISFACTION:
        return random.choice([2, 3, 4, 4])
    return random.choice(["", "Sudah baik", "Perlu lebih cepat"])


async def seed():
    random.seed(7)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as db:
        db.add(User(id=ADMIN_ID, username="admin", name="Admin Helpdesk", role=ROLE_ADMIN))

        users = [
            User(username=f"user{i:02d}", name=f"Pengguna {i:02d}", role=ROLE_REGISTERED, entity=ENTITIES[i % len(ENTITIES)])
            for i in range(20)
        ]
        db.add_all(users)

        templates: dict[str, SurveyTemplate] = {}
        for category_id, name, guest_allowed in CATEGORIES:
            category = ServiceCategory(id=category_id, name=name, guest_allowed=guest_allowed)
            if not guest_allowed:
                template = SurveyTemplate(id=generate_id(), title=f"Survey {name}", category_id=category_id)
                template.questions = [
                    SurveyQuestion(id=generate_id(), text=text, type=question_type.value, position=position)
                    for position, (text, question_type) in enumerate(QUESTIONS)
                ]
                db.add(template)
                templates[category_id] = template
                category.survey_template_id = template.id
            db.add(category)
        await db.flush()

        ticket_count = 0
        response_count = 0
        for day in range(120, -1, -1):
            for _ in range(random.randint(0, 3)):
                category_id = random.choice(list(templates))
                reporter = random.choice(users)
                created_at = NOW - timedelta(days=day, hours=random.randint(0, 20))
                resolved = day > 2 and random.random() < 0.85
                ticket = Ticket(
                    id=f"TKT-{ticket_count + 1:05d}",
                    title="Permintaan layanan",
                    category_id=category_id,
                    status=STATUS_RESOLVED if resolved else random.choice([STATUS_WAITING, STATUS_IN_PROGRESS]),
                    reporter_id=reporter.id,
                    reporter_name=reporter.name,
                    created_at=created_at,
                    updated_at=created_at + timedelta(days=1) if resolved else created_at,
                )
                db.add(ticket)
                ticket_count += 1
                if not resolved or random.random() < 0.3:
                    continue

                template = templates[category_id]
                answers = {question.id: _answer(QuestionType(question.type)) for question in template.questions}
                scores = [
                    score
                    for question in template.questions
                    if (score := score_answer(answers[question.id], question.type)) is not None
                ]
                score = sum(scores) / len(scores) if scores else 0.0
                if day > 90:
                    # responses from before the 0-100 migration stored a 1-5 score
                    score = round(1 + score / 25, 1)
                db.add(
                    SurveyResponse(
                        ticket_id=ticket.id,
                        user_id=reporter.id,
                        template_id=template.id,
                        answers=answers,
                        score=score,
                        created_at=created_at + timedelta(days=1, hours=2),
                    )
                )
                response_count += 1

        await db.commit()

    print(f"Inserted {len(CATEGORIES)} categories, {ticket_count} tickets, {response_count} survey responses")
    print(f"Admin token: {create_access_token(ADMIN_ID, ROLE_ADMIN)}")


if __name__ == "__main__":
    asyncio.run(seed())
