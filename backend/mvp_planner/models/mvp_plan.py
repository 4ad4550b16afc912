import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from ..database import Base
from .guid import GUID


class MvpPlan(Base):
    """Point-in-time snapshot produced by the generation pipeline.

    ``project_id`` is a loose association: the project may have been deleted.
    """

    __tablename__ = "mvp_plans"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(GUID(), nullable=True)
    user_id = Column(GUID(), ForeignKey("users.id"), nullable=True)
    name = Column(String, nullable=False)
    industry = Column(String, nullable=False)
    audience = Column(String, nullable=False)
    problem_statement = Column(Text, nullable=True)
    executive_summary = Column(Text, nullable=True)
    value_proposition = Column(Text, nullable=True)
    mvp_scope = Column(Text, nullable=True)
    key_features = Column(JSON, nullable=False, default=list)
    success_criteria = Column(Text, nullable=True)
    potential_challenges = Column(Text, nullable=True)
    next_steps = Column(Text, nullable=True)
    features_data = Column(JSON, nullable=True)
    milestones_data = Column(JSON, nullable=True)
    kpis_data = Column(JSON, nullable=True)
    diagrams_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    owner = relationship("User", backref="mvp_plans")
