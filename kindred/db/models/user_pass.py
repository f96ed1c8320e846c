from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from kindred.db.base import Base, utcnow


class UserPass(Base):
    """A pass from one user on another. Purely exclusionary."""
    __tablename__ = "user_passes"
    __table_args__ = (
        Index("ix_user_passes_user_id_passed_user_id", "user_id", "passed_user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.user_id"))  # Who passed
    passed_user_id: Mapped[str] = mapped_column(ForeignKey("profiles.user_id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
