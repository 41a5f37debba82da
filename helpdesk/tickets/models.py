from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from helpdesk.models.base import Base, TimestampMixin

STATUS_WAITING = "waiting"
STATUS_PROCESSING = "processing"
STATUS_IN_PROGRESS = "inProgress"
STATUS_RESOLVED = "resolved"

TERMINAL_STATUSES = (STATUS_RESOLVED,)


class Ticket(TimestampMixin, Base):
    __tablename__ = "tickets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(180), default="")
    description: Mapped[str | None] = mapped_column(Text)
    category_id: Mapped[str] = mapped_column(String(60), ForeignKey("service_categories.id"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), default=STATUS_WAITING)  # waiting, processing, inProgress, resolved
    reporter_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), index=True)
    reporter_name: Mapped[str] = mapped_column(String(120), default="")
    is_guest: Mapped[bool] = mapped_column(Boolean, default=False)
