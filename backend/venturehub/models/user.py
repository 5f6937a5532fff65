"""User model"""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from venturehub.models.database import Base


class UserRole(str, enum.Enum):
    ENTREPRENEUR = "entrepreneur"
    VC = "vc"
    ADMIN = "admin"


class User(Base):
    """Platform user; identity and role live off-chain, holdings on-chain"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False)  # entrepreneur, vc, admin
    # Set at most once; uniqueness keeps one wallet per user
    wallet_address = Column(String(42), unique=True, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    ventures = relationship("Venture", back_populates="founder", lazy="dynamic")
    investments = relationship("Investment", back_populates="user", lazy="dynamic")

    def __repr__(self):
        return f"<User {self.id} ({self.role})>"
