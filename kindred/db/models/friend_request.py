from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from kindred.db.base import Base, utcnow

REQUEST_STATUSES = ("pending", "accepted", "rejected")


class FriendRequest(Base):
    """A friend request awaiting (or past) the recipient's decision."""
    __tablename__ = "friend_requests"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    from_user_id: Mapped[str] = mapped_column(ForeignKey("profiles.user_id"), index=True)
    to_user_id: Mapped[str] = mapped_column(ForeignKey("profiles.user_id"), index=True)
    status: Mapped[str] = mapped_column(String(16), default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
