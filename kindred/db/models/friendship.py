from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from kindred.db.base import Base, utcnow


class Friendship(Base):
    """One direction of a confirmed friendship. A friendship is stored as two rows."""
    __tablename__ = "friendships"
    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friendships_pair"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.user_id"), index=True)
    friend_id: Mapped[str] = mapped_column(ForeignKey("profiles.user_id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
