from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from helpdesk.models.base import Base, TimestampMixin, generate_id

ROLE_REGISTERED = "registered"
ROLE_GUEST = "guest"
ROLE_ADMIN = "admin"


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    username: Mapped[str] = mapped_column(String(60), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(120), default="")
    email: Mapped[str | None] = mapped_column(String(180), unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_REGISTERED)  # registered, guest, admin
    entity: Mapped[str] = mapped_column(String(120), default="")  # faculty / unit the user belongs to
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
