import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import relationship

from app.database import Base


class ProfileModel(Base):
    """SQLAlchemy model for profiles table."""

    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_type = Column(String(10), nullable=False)
    full_name = Column(String(255), nullable=False)
    age = Column(Integer, nullable=False, default=0)
    bio = Column(Text, default="")
    location = Column(String(255), default="")
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now()
    )

    # Relationships
    student_profile = relationship(
        "StudentProfileModel", back_populates="profile", uselist=False
    )

    # Constraints (enforced by database CHECK constraints in migrations)
    # user_type IN ('elderly', 'student')


class StudentProfileModel(Base):
    """SQLAlchemy model for student_profiles table."""

    __tablename__ = "student_profiles"

    id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), primary_key=True)
    university = Column(String(255), nullable=False)
    course = Column(String(255), nullable=False)
    student_type = Column(String(20), default="national")
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now()
    )

    profile = relationship("ProfileModel", back_populates="student_profile")

    # student_type IN ('national', 'international', 'erasmus')
