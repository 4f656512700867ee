import uuid

import pytest

from app.models.match import MatchStatus
from app.models.ride import RideStatus, RideType
from app.services.match_service import MatchService
from app.services.ride_service import RideService
from factories import add_match, add_profile, add_ride


@pytest.mark.anyio
async def test_request_creates_pending_match_with_placeholder_score(db_session):
    driver, rider = uuid.uuid4(), uuid.uuid4()
    ride = await add_ride(db_session, driver)

    match = await MatchService().request_ride(rider, ride.id, db_session)

    assert match.status == MatchStatus.PENDING
    assert match.driver_id == driver
    assert match.rider_id == rider
    assert match.match_score == 85


@pytest.mark.anyio
async def test_cannot_request_own_ride(db_session):
    driver = uuid.uuid4()
    ride = await add_ride(db_session, driver)

    assert await MatchService().request_ride(driver, ride.id, db_session) is None


@pytest.mark.anyio
async def test_only_active_offers_take_requests(db_session):
    service = MatchService()
    owner = uuid.uuid4()
    completed = await add_ride(db_session, owner, status=RideStatus.COMPLETED)
    request = await add_ride(db_session, owner, ride_type=RideType.REQUEST)

    assert await service.request_ride(uuid.uuid4(), completed.id, db_session) is None
    assert await service.request_ride(uuid.uuid4(), request.id, db_session) is None
    assert await service.request_ride(uuid.uuid4(), uuid.uuid4(), db_session) is None


@pytest.mark.anyio
async def test_duplicate_open_request_is_rejected(db_session):
    service = MatchService()
    rider = uuid.uuid4()
    ride = await add_ride(db_session, uuid.uuid4())

    assert await service.request_ride(rider, ride.id, db_session) is not None
    assert await service.request_ride(rider, ride.id, db_session) is None


@pytest.mark.anyio
async def test_accepting_marks_ride_matched(db_session):
    ride = await add_ride(db_session, uuid.uuid4())
    match = await add_match(db_session, ride, uuid.uuid4())

    assert await MatchService().update_match_status(match.id, MatchStatus.ACCEPTED, db_session)

    stored_ride = await RideService().get_ride_by_id(ride.id, db_session)
    assert stored_ride.status == RideStatus.MATCHED


@pytest.mark.anyio
async def test_declining_leaves_ride_active(db_session):
    ride = await add_ride(db_session, uuid.uuid4())
    match = await add_match(db_session, ride, uuid.uuid4())

    assert await MatchService().update_match_status(match.id, MatchStatus.DECLINED, db_session)

    stored_ride = await RideService().get_ride_by_id(ride.id, db_session)
    assert stored_ride.status == RideStatus.ACTIVE


@pytest.mark.anyio
@pytest.mark.parametrize("answered", [MatchStatus.ACCEPTED, MatchStatus.DECLINED])
async def test_answered_match_rejects_further_answers(db_session, answered):
    service = MatchService()
    ride = await add_ride(db_session, uuid.uuid4())
    match = await add_match(db_session, ride, uuid.uuid4(), status=answered)

    assert not await service.update_match_status(match.id, MatchStatus.ACCEPTED, db_session)
    assert not await service.update_match_status(match.id, MatchStatus.DECLINED, db_session)

    stored = await service.get_match_by_id(match.id, db_session)
    assert stored.status == answered


@pytest.mark.anyio
async def test_driver_matches_include_ride_and_rider(db_session):
    driver = uuid.uuid4()
    rider = await add_profile(db_session, full_name="Meera Iyer", email="meera@example.com")
    ride = await add_ride(db_session, driver)
    await add_match(db_session, ride, rider.id)
    answered = await add_ride(db_session, driver)
    await add_match(db_session, answered, rider.id, status=MatchStatus.DECLINED)

    service = MatchService()
    pending = await service.get_driver_matches(driver, db_session, pending_only=True)
    everything = await service.get_driver_matches(driver, db_session)

    assert len(pending) == 1
    assert len(everything) == 2
    assert pending[0].rider.full_name == "Meera Iyer"
    assert pending[0].ride.pickup_location == ride.pickup_location
