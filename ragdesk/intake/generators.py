"""Sample carbon intake data.

Fills the daily, scope 2 and satellite sections with plausible values so the
intake flow can be tried out without field measurements. Daily scope 1
emissions follow the plume model

    E = (Vpeak - Vbg) * u * delta_x * C_sector * K * A

where ``C_sector`` and ``K`` come from ClientConfig and ``A`` is drawn once
per generated dataset.
"""

import logging
import random
from datetime import date, timedelta

from ragdesk.config import ClientConfig, get_client_config
from ragdesk.models.intake import (
    DAILY_ROWS_REQUIRED,
    GRID_EMISSION_FACTOR,
    REPORTING_YEAR,
    SATELLITE_ROWS_MINIMUM,
    DailyData,
    SatelliteData,
    Scope2Data,
)

logger = logging.getLogger(__name__)

DEFAULT_CENTER_LAT = 39.9
DEFAULT_CENTER_LON = 116.4
# Observations are scattered this many degrees around the site
SATELLITE_SPREAD_DEG = 0.1


def _uniform(rng: random.Random, low: float, high: float, digits: int) -> float:
    return round(rng.uniform(low, high), digits)


def date_range(start: date, days: int) -> list[str]:
    """ISO dates of ``days`` consecutive days beginning at ``start``."""
    return [(start + timedelta(days=offset)).isoformat() for offset in range(days)]


def scope2_emissions(consumption_kwh: float, factor: float = GRID_EMISSION_FACTOR) -> float:
    """tCO2 of a year of purchased electricity, with ``factor`` in tCO2/MWh."""
    return round(consumption_kwh / 1000 * factor, 2)


def generate_daily_data(
    company_number: str,
    industry: str,
    year: int = REPORTING_YEAR,
    config: ClientConfig | None = None,
    rng: random.Random | None = None,
) -> list[DailyData]:
    """Generate one row per day for the scope 1 step.

    Always returns ``DAILY_ROWS_REQUIRED`` consecutive days starting on
    January 1st of ``year``.

    Args:
        company_number: Written into every row.
        industry: Selects the sector coefficient.
        year: First day of the series is January 1st of this year.
        config: Source of the sector coefficients and K.
        rng: Random source, for reproducible data.

    Returns:
        Daily rows with measurements and computed emissions.
    """
    config = config or get_client_config()
    rng = rng or random.Random()

    c_sector = config.c_sector_for(industry)
    k = config.emission_k
    a = _uniform(rng, 0.5, 2.0, 3)

    rows = []
    for day in date_range(date(year, 1, 1), DAILY_ROWS_REQUIRED):
        vbg = _uniform(rng, 400, 420, 2)
        vpeak = _uniform(rng, 425, 450, 2)
        vpeak_vbg = round(vpeak - vbg, 2)
        u = _uniform(rng, 2, 8, 2)
        delta_x = _uniform(rng, 500, 2000, 1)
        rows.append(
            DailyData(
                f_company_number=company_number,
                f_date=day,
                f_vbg=vbg,
                f_vpeak=vpeak,
                f_vpeak_vbg=vpeak_vbg,
                f_u=u,
                f_delta_x=delta_x,
                f_c_sector=c_sector,
                f_k=k,
                f_a=a,
                f_daily_emissions=round(vpeak_vbg * u * delta_x * c_sector * k * a, 2),
            )
        )

    logger.debug(f"Generated {len(rows)} daily rows for {company_number} (A={a})")
    return rows


def generate_scope2_data(
    company_number: str,
    year: int = REPORTING_YEAR,
    rng: random.Random | None = None,
) -> Scope2Data:
    rng = rng or random.Random()
    consumption = float(round(rng.uniform(100_000, 10_000_000)))
    return Scope2Data(
        f_company_number=company_number,
        f_year=year,
        f_electricity_consumption=consumption,
        f_emission_factor=GRID_EMISSION_FACTOR,
        f_scope2_emissions=scope2_emissions(consumption),
    )


def generate_satellite_data(
    company_number: str,
    center_lat: float = DEFAULT_CENTER_LAT,
    center_lon: float = DEFAULT_CENTER_LON,
    count: int = SATELLITE_ROWS_MINIMUM,
    year: int = REPORTING_YEAR,
    rng: random.Random | None = None,
) -> list[SatelliteData]:
    """Generate CO2 column observations scattered around a site.

    Observation dates are drawn at random from the same day range as the
    daily data, so several observations can share a date.
    """
    rng = rng or random.Random()
    dates = date_range(date(year, 1, 1), DAILY_ROWS_REQUIRED)

    rows = []
    for _ in range(count):
        rows.append(
            SatelliteData(
                f_company_number=company_number,
                f_observation_date=rng.choice(dates),
                f_latitude=round(center_lat + rng.uniform(-SATELLITE_SPREAD_DEG, SATELLITE_SPREAD_DEG), 6),
                f_longitude=round(center_lon + rng.uniform(-SATELLITE_SPREAD_DEG, SATELLITE_SPREAD_DEG), 6),
                f_CO2_concentration=_uniform(rng, 410, 450, 2),
                f_observation_time=f"{rng.randrange(24):02d}:{rng.randrange(60):02d}:00",
            )
        )

    logger.debug(f"Generated {len(rows)} satellite observations for {company_number}")
    return rows
