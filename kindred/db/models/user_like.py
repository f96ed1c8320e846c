from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from kindred.db.base import Base, utcnow


class UserLike(Base):
    """A like from one user (liker) toward another. Never edited."""
    __tablename__ = "user_likes"
    __table_args__ = (
        Index("ix_user_likes_user_id_created_at", "user_id", "created_at"),
        Index("ix_user_likes_liked_user_id", "liked_user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.user_id"))  # Who liked
    liked_user_id: Mapped[str] = mapped_column(ForeignKey("profiles.user_id"))  # Who is liked
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
