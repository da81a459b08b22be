"""
skillbridge/orm/user_profile.py
UserProfile - Persisted progression state for one user

Only the profile store writes to this table, and only through a
compare-and-swap on `version`.
"""
from sqlalchemy import Column, Integer, String, Date, JSON, Index

from skillbridge.orm.base import Base, TimestampMixin


class UserProfile(TimestampMixin, Base):
    """
    Per-user accumulators.

    completed_lessons and recent_scores are JSON lists; the engine works on
    a frozenset / tuple view of them.
    """
    __tablename__ = "user_profiles"

    # Identity provider uid (token "sub" claim)
    user_id = Column(String(128), primary_key=True, index=True)

    display_name = Column(String(200), nullable=True)
    interests = Column(JSON, nullable=False, default=list)

    # Accumulators
    total_xp = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    last_activity_date = Column(Date, nullable=True)
    completed_lessons = Column(JSON, nullable=False, default=list)

    # Derived progression
    current_phase = Column(String(32), nullable=False, default="life_skills", index=True)
    readiness_score = Column(Integer, nullable=False, default=0)
    credits = Column(Integer, nullable=False, default=0)
    skill_credits = Column(Integer, nullable=False, default=0)
    recent_scores = Column(JSON, nullable=False, default=list)
    phase_activity_count = Column(Integer, nullable=False, default=0)

    # Compare-and-swap token, bumped on every write
    version = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_user_profiles_total_xp", "total_xp"),
    )

    def to_dict(self):
        return {
            "userId": self.user_id,
            "name": self.display_name,
            "interests": list(self.interests or []),
            "totalXp": self.total_xp,
            "currentStreak": self.current_streak,
            "lastActivityDate": self.last_activity_date.isoformat() if self.last_activity_date else None,
            "completedLessons": list(self.completed_lessons or []),
            "currentPhase": self.current_phase,
            "readinessScore": self.readiness_score,
            "credits": self.credits,
            "skillCredits": self.skill_credits,
        }

    def __repr__(self):
        return f"<UserProfile(user_id={self.user_id}, phase={self.current_phase}, xp={self.total_xp})>"
