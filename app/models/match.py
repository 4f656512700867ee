from sqlalchemy import Column, Integer, TIMESTAMP, Enum, ForeignKey, Uuid
from sqlalchemy.sql import func
import uuid
import enum
from ..database import Base
from .ride import _enum_values


class MatchStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COMPLETED = "completed"


# A rider holds a seat once the driver accepted; completing the match keeps it
CONFIRMED_MATCH_STATUSES = (MatchStatus.ACCEPTED, MatchStatus.COMPLETED)


class Match(Base):
    __tablename__ = "matches"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    rider_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    driver_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    ride_id = Column(Uuid(as_uuid=True), ForeignKey("rides.id"), nullable=False, index=True)

    match_score = Column(Integer, nullable=False)
    status = Column(
        Enum(MatchStatus, values_callable=_enum_values),
        nullable=False,
        default=MatchStatus.PENDING,
    )

    # Timestamps
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Match(id={self.id}, ride_id={self.ride_id}, status={self.status})>"
