from sqlalchemy import Column, Integer, Float, DECIMAL, TIMESTAMP, Text, Enum, Uuid
from sqlalchemy.sql import func
import uuid
import enum
from ..database import Base


class RideStatus(str, enum.Enum):
    ACTIVE = "active"
    MATCHED = "matched"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RideType(str, enum.Enum):
    OFFER = "offer"
    REQUEST = "request"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Ride(Base):
    __tablename__ = "rides"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    type = Column(Enum(RideType, values_callable=_enum_values), nullable=False)

    # Route
    pickup_location = Column(Text, nullable=False)
    pickup_lat = Column(Float, nullable=False, default=0.0)
    pickup_lng = Column(Float, nullable=False, default=0.0)
    dropoff_location = Column(Text, nullable=False)
    dropoff_lat = Column(Float, nullable=False, default=0.0)
    dropoff_lng = Column(Float, nullable=False, default=0.0)

    # Ride details
    departure_time = Column(TIMESTAMP(timezone=True), nullable=False)
    available_seats = Column(Integer, nullable=True)
    price = Column(DECIMAL(10, 2), nullable=True)
    preferences = Column(Text, nullable=True)
    status = Column(
        Enum(RideStatus, values_callable=_enum_values),
        nullable=False,
        default=RideStatus.ACTIVE,
    )

    # Timestamps
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Ride(id={self.id}, type={self.type}, status={self.status}, user_id={self.user_id})>"
