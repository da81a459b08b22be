"""
skillbridge/orm/catalog.py
Catalog tables: roadmap tasks (lessons) and opportunity listings

Both are read-only for users; they are seeded at startup.
"""
from sqlalchemy import Column, Integer, String

from skillbridge.orm.base import Base, TimestampMixin


class RoadmapTask(TimestampMixin, Base):
    """A lesson on the roadmap. Its id is the lesson id."""
    __tablename__ = "roadmap_tasks"

    id = Column(String(64), primary_key=True)
    title = Column(String(200), nullable=False)
    phase = Column(String(32), nullable=False, index=True)
    xp_reward = Column(Integer, nullable=False, default=10)
    min_readiness_score = Column(Integer, nullable=False, default=0)
    min_phase = Column(String(32), nullable=False, default="life_skills")
    sort_order = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<RoadmapTask(id={self.id}, phase={self.phase})>"


class OpportunityListing(TimestampMixin, Base):
    """A gig with eligibility thresholds."""
    __tablename__ = "opportunity_listings"

    id = Column(String(64), primary_key=True)
    title = Column(String(200), nullable=False)
    type = Column(String(32), nullable=False, default="gig")
    payout = Column(String(64), nullable=True)
    min_readiness_score = Column(Integer, nullable=False, default=0)
    min_phase = Column(String(32), nullable=False, default="life_skills")
    sort_order = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<OpportunityListing(id={self.id}, min_phase={self.min_phase})>"
