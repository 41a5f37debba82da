from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DashboardSummary(ReportModel):
    total_tickets: int
    open_tickets: int
    resolved_this_period: int
    avg_rating: float


class ServiceTrend(ReportModel):
    category_id: str
    label: str
    percentage: float
    note: str = ""


class ServiceSatisfaction(ReportModel):
    category_id: str
    label: str
    avg_score: float
    responses: int
    percentage: float


class CohortRow(ReportModel):
    label: str
    users: int
    retention: list[int]
    avg_score: float
    response_rate: float


class UsageCohortRow(ReportModel):
    label: str
    tickets: int
    surveys: int


class EntityServiceRow(ReportModel):
    entity: str
    category_id: str
    category: str
    tickets: int
    surveys: int


class SurveySatisfactionRow(ReportModel):
    question_id: str
    question: str
    type: str
    avg_score: float
    responses: int


class SurveySatisfactionReport(ReportModel):
    template_id: str
    template: str
    category_id: str
    category: str
    period: str
    start: datetime
    end: datetime
    rows: list[SurveySatisfactionRow]


class SurveyQuestionOut(ReportModel):
    id: str
    text: str
    type: str
    options: list[str] = []


class SurveyTemplateOut(ReportModel):
    id: str
    title: str
    description: str | None
    category_id: str | None
    questions: list[SurveyQuestionOut]
    created_at: datetime
    updated_at: datetime


class ExportResponse(ReportModel):
    id: str
    ticket_id: str
    user_id: str
    score: float
    created_at: datetime
    answers: dict | None


class SurveyExport(ReportModel):
    template_id: str
    template: str
    category_id: str
    category: str
    period: str
    start: datetime
    end: datetime
    questions: list[SurveyQuestionOut]
    responses: list[ExportResponse]
