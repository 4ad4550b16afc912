import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import Base
from .guid import GUID


class Project(Base):
    __tablename__ = "projects"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID(), ForeignKey("users.id"), nullable=True)
    name = Column(String, nullable=False)
    industry = Column(String, nullable=False)
    audience = Column(String, nullable=False)
    problem_statement = Column(Text, nullable=True)
    key_benefits = Column(JSON, nullable=False, default=list)
    additional_notes = Column(Text, nullable=True)
    current_step = Column(String(32), nullable=False, default="projectInfo")
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    owner = relationship("User", back_populates="projects")

    # Child rows live and die with the project.
    features = relationship("Feature", cascade="all, delete-orphan", lazy="selectin")
    validation_methods = relationship("ValidationMethod", cascade="all, delete-orphan", lazy="selectin")
    competitors = relationship(
        "Competitor",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="[Competitor.position, Competitor.created_at]",
    )
    competitive_features = relationship("CompetitiveFeature", cascade="all, delete-orphan", lazy="selectin")
    milestones = relationship(
        "Milestone",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Milestone.order",
    )
    kpis = relationship("Kpi", cascade="all, delete-orphan", lazy="selectin")
    flow_diagrams = relationship(
        "FlowDiagram",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="FlowDiagram.created_at",
    )


class Feature(Base):
    __tablename__ = "features"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(16), nullable=False)  # Low | Medium | High
    difficulty = Column(String(16), nullable=False)  # Easy | Medium | Hard
    include_in_mvp = Column(Boolean, nullable=False, default=True)


class ValidationMethod(Base):
    __tablename__ = "validation_methods"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id"), nullable=False, index=True)
    method = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_selected = Column(Boolean, nullable=False, default=False)


class Competitor(Base):
    __tablename__ = "competitors"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    # Per-project sequence; defines the comparison grid column order.
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class CompetitiveFeature(Base):
    __tablename__ = "competitive_features"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    your_mvp = Column(Boolean, nullable=False, default=False)
    # Keyed by competitor id (str), never by column position.
    competitors_has_feature = Column(JSON, nullable=False, default=dict)


class Milestone(Base):
    __tablename__ = "milestones"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    duration = Column(Integer, nullable=False)  # weeks
    order = Column(Integer, nullable=False)


class Kpi(Base):
    __tablename__ = "kpis"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    target = Column(String, nullable=True)
    timeframe = Column(String, nullable=True)


class FlowDiagram(Base):
    __tablename__ = "flow_diagrams"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    data = Column(JSON, nullable=False, default=lambda: {"nodes": [], "edges": []})
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
