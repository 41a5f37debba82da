import enum
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, ForeignKey, Integer, JSON, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from helpdesk.models.base import Base, TimestampMixin, generate_id


class QuestionType(str, enum.Enum):
    YES_NO = "yesNo"
    LIKERT = "likert"
    LIKERT_QUALITY = "likertQuality"
    LIKERT_3 = "likert3"
    LIKERT_3_SATISFACTION = "likert3Puas"
    LIKERT_4 = "likert4"
    LIKERT_4_SATISFACTION = "likert4Puas"
    TEXT = "text"
    MULTIPLE_CHOICE = "multipleChoice"


class SurveyTemplate(TimestampMixin, Base):
    __tablename__ = "survey_templates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_id)
    title: Mapped[str] = mapped_column(String(160), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category_id: Mapped[str | None] = mapped_column(String(60), index=True)

    questions: Mapped[list["SurveyQuestion"]] = relationship(
        back_populates="template",
        order_by="SurveyQuestion.position",
        lazy="selectin",
    )


class SurveyQuestion(Base):
    __tablename__ = "survey_questions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_id)
    template_id: Mapped[str] = mapped_column(String(64), ForeignKey("survey_templates.id"), nullable=False, index=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(24), nullable=False)  # QuestionType value
    options: Mapped[list | None] = mapped_column(JSON, default=list)
    position: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    template: Mapped[SurveyTemplate] = relationship(back_populates="questions")


class SurveyResponse(Base):
    __tablename__ = "survey_responses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    ticket_id: Mapped[str] = mapped_column(String(64), ForeignKey("tickets.id"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    # Empty for responses submitted before templates were tracked
    template_id: Mapped[str] = mapped_column(String(64), default="", index=True)
    # Decoded leniently: rows written by older clients may not hold a JSON object
    answers: Mapped[dict | None] = mapped_column(JSON, default=dict)
    score: Mapped[float] = mapped_column(Float, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        index=True,
    )
