import uuid

import pytest
from sqlalchemy import select

from app.models.match import Match, MatchStatus
from app.models.profile import Profile
from app.models.ride import RideStatus
from app.services.eco_service import (
    EcoService,
    co2_saved,
    coin_progress,
    count_shared_rides,
    is_shared_ride,
)
from app.services.match_service import MatchService
from factories import add_match, add_profile, add_ride


@pytest.mark.parametrize(
    "shared,coins,remaining",
    [(0, 0, 5), (4, 0, 1), (5, 1, 5), (9, 1, 1), (10, 2, 5)],
)
def test_coin_progress(shared, coins, remaining):
    assert coin_progress(shared) == (coins, remaining)


def test_co2_estimate_uses_fixed_distance():
    assert co2_saved(0) == 0
    assert co2_saved(3) == pytest.approx(7.2)


def _match(rider_id, driver_id, status=MatchStatus.ACCEPTED):
    return Match(
        id=uuid.uuid4(),
        rider_id=rider_id,
        driver_id=driver_id,
        ride_id=uuid.uuid4(),
        match_score=85,
        status=status,
    )


def test_self_match_is_never_shared():
    user = uuid.uuid4()
    assert not is_shared_ride(_match(user, user), RideStatus.COMPLETED)


def test_shared_ride_needs_confirmed_match_and_completed_ride():
    rider, driver = uuid.uuid4(), uuid.uuid4()
    assert is_shared_ride(_match(rider, driver), RideStatus.COMPLETED)
    assert is_shared_ride(_match(rider, driver, MatchStatus.COMPLETED), RideStatus.COMPLETED)
    assert not is_shared_ride(_match(rider, driver), RideStatus.ACTIVE)
    assert not is_shared_ride(_match(rider, driver, MatchStatus.PENDING), RideStatus.COMPLETED)
    assert not is_shared_ride(_match(rider, driver), None)


def test_count_shared_rides():
    rider, driver = uuid.uuid4(), uuid.uuid4()
    matches = [_match(rider, driver), _match(rider, driver), _match(driver, driver)]
    statuses = {
        matches[0].ride_id: RideStatus.COMPLETED,
        matches[1].ride_id: RideStatus.MATCHED,
        matches[2].ride_id: RideStatus.COMPLETED,
    }
    assert count_shared_rides(matches, statuses) == 1


@pytest.mark.anyio
async def test_reconcile_wallet_persists_recomputed_values(db_session):
    driver = await add_profile(db_session, full_name="Driver")
    rider = await add_profile(db_session, full_name="Rider")

    for _ in range(6):
        ride = await add_ride(db_session, driver.id, status=RideStatus.COMPLETED)
        await add_match(db_session, ride, rider.id, status=MatchStatus.ACCEPTED)

    # Does not count: ride not completed, match not accepted, self-match
    open_ride = await add_ride(db_session, driver.id, status=RideStatus.ACTIVE)
    await add_match(db_session, open_ride, rider.id, status=MatchStatus.ACCEPTED)
    declined_ride = await add_ride(db_session, driver.id, status=RideStatus.COMPLETED)
    await add_match(db_session, declined_ride, rider.id, status=MatchStatus.DECLINED)
    solo_ride = await add_ride(db_session, driver.id, status=RideStatus.COMPLETED)
    await add_match(db_session, solo_ride, driver.id, driver_id=driver.id, status=MatchStatus.ACCEPTED)

    service = EcoService()
    wallet = await service.reconcile_wallet(driver.id, db_session)

    assert wallet.shared_rides == 6
    assert wallet.eco_coins == 1
    assert wallet.rides_to_next_coin == 4
    assert wallet.progress_percent == 20
    assert wallet.total_rides == 8
    assert wallet.co2_saved == pytest.approx(8 * 20 * 0.12)

    stored = (await db_session.execute(select(Profile).where(Profile.id == driver.id))).scalar_one()
    assert stored.eco_coins == 1
    assert stored.total_rides == 8

    rider_wallet = await service.reconcile_wallet(rider.id, db_session)
    assert rider_wallet.shared_rides == 6
    assert rider_wallet.total_rides == 0


@pytest.mark.anyio
async def test_reconcile_overwrites_stale_cache(db_session):
    profile = await add_profile(db_session)
    profile.eco_coins = 42
    await db_session.commit()

    wallet = await EcoService().reconcile_wallet(profile.id, db_session)

    assert wallet.eco_coins == 0
    assert wallet.rides_to_next_coin == 5
    assert profile.eco_coins == 0


@pytest.mark.anyio
async def test_reconcile_unknown_profile(db_session):
    assert await EcoService().reconcile_wallet(uuid.uuid4(), db_session) is None


@pytest.mark.anyio
async def test_leaderboard_and_community_impact(db_session):
    low = await add_profile(db_session, full_name="Low")
    high = await add_profile(db_session, full_name="High")
    high.eco_coins = 7
    low.eco_coins = 2
    await db_session.commit()
    await add_ride(db_session, low.id, status=RideStatus.COMPLETED)
    await add_ride(db_session, high.id, status=RideStatus.COMPLETED)
    await add_ride(db_session, high.id, status=RideStatus.ACTIVE)

    service = EcoService()
    entries = await service.get_leaderboard(db_session)
    impact = await service.get_community_impact(db_session)

    assert [entry.full_name for entry in entries] == ["High", "Low"]
    assert impact.completed_rides == 2
    assert impact.co2_saved == pytest.approx(4.8)


@pytest.mark.anyio
async def test_completing_a_match_keeps_the_shared_ride(db_session):
    driver = await add_profile(db_session, full_name="Driver")
    rider = await add_profile(db_session, full_name="Rider")
    ride = await add_ride(db_session, driver.id, status=RideStatus.COMPLETED)
    match = await add_match(db_session, ride, rider.id, status=MatchStatus.ACCEPTED)

    service = EcoService()
    before = await service.reconcile_wallet(rider.id, db_session)
    assert await MatchService().update_match_status(match.id, MatchStatus.COMPLETED, db_session)
    after = await service.reconcile_wallet(rider.id, db_session)

    assert before.shared_rides == after.shared_rides == 1


@pytest.mark.anyio
async def test_reconcile_wallets_skips_unknown_users_and_duplicates(db_session):
    driver = await add_profile(db_session, full_name="Driver")
    rider = await add_profile(db_session, full_name="Rider")
    ride = await add_ride(db_session, driver.id, status=RideStatus.COMPLETED)
    await add_match(db_session, ride, rider.id, status=MatchStatus.COMPLETED)

    wallets = await EcoService().reconcile_wallets(
        [driver.id, rider.id, driver.id, uuid.uuid4()], db_session
    )

    assert set(wallets) == {driver.id, rider.id}
    assert wallets[driver.id].shared_rides == 1
    assert wallets[rider.id].rides_to_next_coin == 4
