from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from kindred.db.base import Base, utcnow


class Block(Base):
    """Model representing a blocked user relationship."""
    __tablename__ = "blocks"
    __table_args__ = (
        UniqueConstraint("blocker_id", "blocked_id", name="uq_blocks_pair"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    blocker_id: Mapped[str] = mapped_column(ForeignKey("profiles.user_id"), index=True)  # Who blocked
    blocked_id: Mapped[str] = mapped_column(ForeignKey("profiles.user_id"), index=True)  # Who is blocked
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
