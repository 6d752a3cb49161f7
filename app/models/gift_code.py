"""Gift code model."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String

from app.database import Base


class GiftCode(Base):
    """Single-use code that grants credits when redeemed."""

    __tablename__ = "gift_code"
    __table_args__ = (CheckConstraint("credits > 0", name="ck_gift_code_credits_positive"),)

    code = Column(String(64), primary_key=True)
    credits = Column(Integer, nullable=False)
    redeemed_by = Column(String(36), ForeignKey("user.id"), nullable=True, index=True)
    redeemed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
