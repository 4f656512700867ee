from sqlalchemy import Column, String, Boolean, Integer, Float, TIMESTAMP, JSON, Uuid
from sqlalchemy.sql import func
from ..database import Base


class Profile(Base):
    __tablename__ = "profiles"

    # Same id as the authenticated user
    id = Column(Uuid(as_uuid=True), primary_key=True)

    full_name = Column(String(200), nullable=False)
    email = Column(String(320), nullable=False, unique=True)
    phone = Column(String(40), nullable=True)
    avatar_url = Column(String(500), nullable=True)

    # Membership
    is_premium = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    # Eco aggregates, rewritten by wallet reconciliation only
    eco_coins = Column(Integer, default=0, nullable=False)
    total_rides = Column(Integer, default=0, nullable=False)
    co2_saved = Column(Float, default=0.0, nullable=False)

    # music / pets / smoking / personality
    preferences = Column(JSON, nullable=True)

    # Timestamps
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Profile(id={self.id}, email={self.email}, premium={self.is_premium})>"
