"""Monthly commute cost of driving alone versus carpooling."""
from typing import Optional

from ..schemas.eco import CostBreakdown, CostComparison, FuelType

WEEKS_PER_MONTH = 4.33

FUEL_PRICE_PER_UNIT = {
    FuelType.PETROL: 100.0,
    FuelType.DIESEL: 90.0,
    FuelType.CNG: 60.0,
}

FUEL_EFFICIENCY_KM_PER_UNIT = {
    FuelType.PETROL: 15.0,
    FuelType.DIESEL: 20.0,
    FuelType.CNG: 18.0,
}

LONG_COMMUTE_KM = 20.0
LONG_COMMUTE_TOLL = 800.0
SHORT_COMMUTE_TOLL = 400.0
PARKING_PER_DAY = 50.0
MONTHLY_MAINTENANCE = 2000.0
CARPOOL_SHARE = 2


def compare_costs(
    daily_distance_km: float,
    days_per_week: int,
    fuel_type: FuelType = FuelType.PETROL,
) -> Optional[CostComparison]:
    """Compare a month of solo driving with a two-way carpool split.

    Returns None when distance or days are not positive. The carpool figure
    only splits fuel and toll; parking and maintenance stay with the car
    owner.
    """
    if daily_distance_km <= 0 or days_per_week <= 0:
        return None

    fuel_type = FuelType(fuel_type)
    monthly_distance = daily_distance_km * days_per_week * WEEKS_PER_MONTH
    fuel_cost = (
        monthly_distance / FUEL_EFFICIENCY_KM_PER_UNIT[fuel_type]
    ) * FUEL_PRICE_PER_UNIT[fuel_type]
    toll = LONG_COMMUTE_TOLL if daily_distance_km > LONG_COMMUTE_KM else SHORT_COMMUTE_TOLL
    parking = days_per_week * WEEKS_PER_MONTH * PARKING_PER_DAY
    maintenance = MONTHLY_MAINTENANCE

    personal_cost = fuel_cost + toll + parking + maintenance
    carpool_cost = (fuel_cost + toll) / CARPOOL_SHARE

    return CostComparison(
        personal_cost=personal_cost,
        carpool_cost=carpool_cost,
        savings=personal_cost - carpool_cost,
        breakdown=CostBreakdown(
            monthly_distance=monthly_distance,
            fuel_cost=fuel_cost,
            toll=toll,
            parking=parking,
            maintenance=maintenance,
        ),
    )
