from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from helpdesk.models.base import Base, TimestampMixin


class ServiceCategory(TimestampMixin, Base):
    __tablename__ = "service_categories"

    id: Mapped[str] = mapped_column(String(60), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    guest_allowed: Mapped[bool] = mapped_column(Boolean, default=False)
    # Template currently assigned to new tickets; historical responses keep their own template_id
    survey_template_id: Mapped[str | None] = mapped_column(String(64))
