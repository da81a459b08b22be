"""
skillbridge/orm/simulation_attempt.py
SimulationAttempt - Graded scenario responses (immutable once stored)
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index

from skillbridge.orm.base import Base


class SimulationAttempt(Base):
    """
    One graded simulation submission.

    `grader` records which implementation produced the score
    ("remote" or "local").
    """
    __tablename__ = "simulation_attempts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    user_id = Column(
        String(128),
        ForeignKey("user_profiles.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    phase = Column(String(32), nullable=False)
    topic_id = Column(String(128), nullable=True)
    topic_name = Column(String(200), nullable=True)

    prompt = Column(Text, nullable=False)
    response = Column(Text, nullable=False)

    score = Column(Integer, nullable=False)
    feedback = Column(Text, nullable=False, default="")
    grader = Column(String(16), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_simulation_attempts_user_created", "user_id", "created_at"),
    )

    def to_dict(self):
        return {
            "id": str(self.id),
            "phase": self.phase,
            "topicId": self.topic_id,
            "topicName": self.topic_name,
            "prompt": self.prompt,
            "response": self.response,
            "score": self.score,
            "feedback": self.feedback,
            "grader": self.grader,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<SimulationAttempt(id={self.id}, user_id={self.user_id}, score={self.score})>"
