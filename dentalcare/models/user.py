from sqlalchemy import Column, Integer, String, DateTime, Boolean, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..core.security import UserRole

def enum_values(enum_cls):
    """Persist enum members by value so raw SQL sees 'patient', not 'PATIENT'."""
    return [member.value for member in enum_cls]

class User(Base):
    """Login credentials and role; the profile lives in patients or doctors."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        SQLEnum(UserRole, name="user_role", native_enum=False, values_callable=enum_values),
        nullable=False
    )
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="user", uselist=False)
    doctor = relationship("Doctor", back_populates="user", uselist=False)

    @property
    def profile(self):
        return self.doctor if self.role == UserRole.DOCTOR else self.patient

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

class RevokedToken(Base):
    """Access tokens ended by logout; kept until the token would expire anyway."""
    __tablename__ = "revoked_tokens"

    id = Column(Integer, primary_key=True, index=True)
    jti = Column(String(64), unique=True, index=True, nullable=False)
    user_id = Column(Integer, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    revoked_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<RevokedToken(id={self.id}, user_id={self.user_id})>"
