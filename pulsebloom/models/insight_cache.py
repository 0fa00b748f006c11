"""
InsightCache: last generated insights per user, keyed by data fingerprint.

One row per user. The row is upserted whenever the fingerprint of the
user's analytics input changes; it is only removed together with the user.

insights: JSON-encoded list of insight dicts stored as Text.
"""
from datetime import datetime
from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from pulsebloom.db.base import Base


class InsightCache(Base):
    __tablename__ = "insight_cache"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    data_hash: Mapped[str] = mapped_column(
        String(64), nullable=False, comment="SHA-256 hex digest of the canonical input"
    )
    insights: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
