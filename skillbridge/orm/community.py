"""
skillbridge/orm/community.py
Peer features: skill swaps and problem pods

A skill swap is an offer ("I can teach X, I want to learn Y") that one
other user can accept. Accepting credits both sides with skill credits.
Problem pods are open questions other users reply to.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index

from skillbridge.orm.base import Base, TimestampMixin


class SkillSwap(TimestampMixin, Base):
    __tablename__ = "skill_swaps"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    user_id = Column(
        String(128),
        ForeignKey("user_profiles.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    offer_skill = Column(String(120), nullable=False)
    want_skill = Column(String(120), nullable=False)
    note = Column(Text, nullable=True)

    # open -> accepted, exactly once
    status = Column(String(16), nullable=False, default="open", index=True)
    partner_id = Column(String(128), ForeignKey("user_profiles.user_id"), nullable=True, index=True)
    accepted_at = Column(DateTime, nullable=True)

    def to_dict(self):
        return {
            "id": str(self.id),
            "userId": self.user_id,
            "offerSkill": self.offer_skill,
            "wantSkill": self.want_skill,
            "note": self.note,
            "status": self.status,
            "partnerId": self.partner_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "acceptedAt": self.accepted_at.isoformat() if self.accepted_at else None,
        }

    def __repr__(self):
        return f"<SkillSwap(id={self.id}, status={self.status})>"


class ProblemPod(TimestampMixin, Base):
    __tablename__ = "problem_pods"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    user_id = Column(
        String(128),
        ForeignKey("user_profiles.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(64), nullable=True)

    def to_dict(self, replies: int = 0):
        return {
            "id": str(self.id),
            "userId": self.user_id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "replies": replies,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<ProblemPod(id={self.id}, title={self.title})>"


class PodResponse(Base):
    __tablename__ = "pod_responses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    pod_id = Column(Integer, ForeignKey("problem_pods.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(128), ForeignKey("user_profiles.user_id"), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_pod_responses_pod_created", "pod_id", "created_at"),
    )

    def to_dict(self):
        return {
            "id": str(self.id),
            "podId": str(self.pod_id),
            "userId": self.user_id,
            "message": self.message,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
