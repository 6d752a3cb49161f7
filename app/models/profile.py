"""User profile model."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String

from app.database import Base

PLAN_FREE = "free"
PLAN_FULL_APP = "full_app_purchase"
PLANS = (PLAN_FREE, PLAN_FULL_APP)


class Profile(Base):
    """Plan, credit balance and preferences for one user."""

    __tablename__ = "profile"
    __table_args__ = (
        CheckConstraint("credits >= 0", name="ck_profile_credits_non_negative"),
        CheckConstraint("deletion_policy_days >= 0", name="ck_profile_deletion_policy_non_negative"),
    )

    id = Column(String(36), ForeignKey("user.id", ondelete="CASCADE"), primary_key=True)
    email = Column(String(256), nullable=False)
    credits = Column(Integer, nullable=False, default=25)
    current_plan = Column(String(32), nullable=False, default=PLAN_FREE)  # free, full_app_purchase
    has_purchased_app = Column(Boolean, nullable=False, default=False)
    cloud_sync_enabled = Column(Boolean, nullable=False, default=False)
    auto_cloud_sync = Column(Boolean, nullable=False, default=False)
    deletion_policy_days = Column(Integer, nullable=False, default=0)
    plan_selected = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def is_pro(self) -> bool:
        return bool(self.has_purchased_app) or self.current_plan == PLAN_FULL_APP
