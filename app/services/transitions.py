"""Allowed status changes for rides and matches."""
from typing import Dict, FrozenSet

from ..models.match import MatchStatus
from ..models.ride import RideStatus


RIDE_TRANSITIONS: Dict[RideStatus, FrozenSet[RideStatus]] = {
    RideStatus.ACTIVE: frozenset({RideStatus.MATCHED, RideStatus.COMPLETED, RideStatus.CANCELLED}),
    RideStatus.MATCHED: frozenset({RideStatus.ACTIVE, RideStatus.CANCELLED}),
    RideStatus.COMPLETED: frozenset(),  # Terminal state
    RideStatus.CANCELLED: frozenset(),  # Terminal state
}

MATCH_TRANSITIONS: Dict[MatchStatus, FrozenSet[MatchStatus]] = {
    MatchStatus.PENDING: frozenset({MatchStatus.ACCEPTED, MatchStatus.DECLINED}),
    MatchStatus.ACCEPTED: frozenset({MatchStatus.COMPLETED}),
    MatchStatus.DECLINED: frozenset(),  # Terminal state
    MatchStatus.COMPLETED: frozenset(),  # Terminal state
}


def is_valid_ride_transition(current_status: RideStatus, new_status: RideStatus) -> bool:
    """Validate if ride status transition is allowed"""
    return new_status in RIDE_TRANSITIONS.get(RideStatus(current_status), frozenset())


def is_valid_match_transition(current_status: MatchStatus, new_status: MatchStatus) -> bool:
    """Validate if match status transition is allowed"""
    return new_status in MATCH_TRANSITIONS.get(MatchStatus(current_status), frozenset())
