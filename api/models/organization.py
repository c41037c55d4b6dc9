from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from database import Base
from workflow.models import utcnow


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    domain = Column(String, unique=True, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, server_default='true')
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=True)

    # Relationship: An organization has multiple users
    users = relationship("User", back_populates="organization")
