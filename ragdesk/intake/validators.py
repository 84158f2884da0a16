"""Client-side validation of carbon emissions intake data.

Checks run before submission so obvious mistakes are reported per row
instead of as a single backend rejection. Errors block submission, warnings
do not.
"""

from collections.abc import Sequence

from ragdesk.models.intake import (
    DAILY_ROWS_REQUIRED,
    SATELLITE_ROWS_MINIMUM,
    SCOPE3_DIMENSIONS_REQUIRED,
    CompanyInfo,
    CompletenessCheck,
    CountCheck,
    DailyData,
    DataImportPayload,
    SatelliteData,
    Scope2Data,
    Scope3Data,
    ValidationResult,
)

MAX_CONCENTRATION_PPM = 1000
MAX_WIND_SPEED = 50
MAX_DOWNWIND_DISTANCE = 10000
MAX_ELECTRICITY_KWH = 100_000_000
MAX_SCOPE3_VALUE = 1_000_000


def _blank(value: str | None) -> bool:
    return not value or not value.strip()


def _check_range(
    errors: list[str],
    prefix: str,
    label: str,
    value: float | None,
    low: float,
    high: float,
    unit: str,
) -> None:
    if value is None:
        errors.append(f"{prefix}{label} is required")
    elif value < low or value > high:
        errors.append(f"{prefix}{label} out of range ({low:g}-{high:g} {unit})")


def validate_company_info(company: CompanyInfo) -> ValidationResult:
    errors: list[str] = []
    if _blank(company.f_company_name):
        errors.append("Company name is required")
    if _blank(company.f_company_number):
        errors.append("Company number is required")
    if _blank(company.f_industry):
        errors.append("Please select an industry")
    if _blank(company.f_region):
        errors.append("Region is required")
    return ValidationResult(valid=not errors, errors=errors)


def validate_daily_data(rows: Sequence[DailyData]) -> ValidationResult:
    """Validate the scope 1 daily measurement rows.

    Each row needs a date, background and peak concentrations in
    0-1000 ppm with peak >= background, wind speed in 0-50 m/s and
    downwind distance in 0-10000 m. Dates must be unique.
    """
    if not rows:
        return ValidationResult(valid=False, errors=["Daily data is required"])

    errors: list[str] = []
    warnings: list[str] = []
    if len(rows) != DAILY_ROWS_REQUIRED:
        warnings.append(
            f"Daily data should have {DAILY_ROWS_REQUIRED} rows, found {len(rows)}"
        )

    for index, row in enumerate(rows, start=1):
        prefix = f"Row {index}: "
        if not row.f_date:
            errors.append(f"{prefix}date is required")
        _check_range(errors, prefix, "background value", row.f_vbg, 0, MAX_CONCENTRATION_PPM, "ppm")
        _check_range(errors, prefix, "peak value", row.f_vpeak, 0, MAX_CONCENTRATION_PPM, "ppm")
        if row.f_vpeak is not None and row.f_vbg is not None and row.f_vpeak < row.f_vbg:
            errors.append(f"{prefix}peak value cannot be below background value")
        _check_range(errors, prefix, "wind speed", row.f_u, 0, MAX_WIND_SPEED, "m/s")
        _check_range(errors, prefix, "downwind distance", row.f_delta_x, 0, MAX_DOWNWIND_DISTANCE, "m")

    dates = [row.f_date for row in rows]
    if len(dates) != len(set(dates)):
        errors.append("Duplicate dates found")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def validate_scope2_data(data: Scope2Data) -> ValidationResult:
    errors: list[str] = []
    if not data.f_year:
        errors.append("Year is required")

    consumption = data.f_electricity_consumption
    if consumption is None:
        errors.append("Annual electricity consumption is required")
    elif consumption < 0:
        errors.append("Annual electricity consumption cannot be negative")
    elif consumption > MAX_ELECTRICITY_KWH:
        errors.append("Annual electricity consumption out of range (0-100,000,000 kWh)")

    return ValidationResult(valid=not errors, errors=errors)


def validate_scope3_data(data: Scope3Data) -> ValidationResult:
    errors: list[str] = []
    if not data.f_year:
        errors.append("Year is required")
    if _blank(data.f_company_industry):
        errors.append("Industry is required")

    if not data.dimensions:
        errors.append("Emission dimensions are required")
    elif len(data.dimensions) != SCOPE3_DIMENSIONS_REQUIRED:
        errors.append(
            f"Expected {SCOPE3_DIMENSIONS_REQUIRED} emission dimensions, found {len(data.dimensions)}"
        )
    else:
        for index, dimension in enumerate(data.dimensions, start=1):
            value = dimension.f_emission_value
            if value is None:
                errors.append(f"Dimension {index}: emission value is required")
            elif value < 0:
                errors.append(f"Dimension {index}: emission value cannot be negative")
            elif value > MAX_SCOPE3_VALUE:
                errors.append(f"Dimension {index}: emission value out of range (0-1,000,000 tCO2)")

    return ValidationResult(valid=not errors, errors=errors)


def validate_satellite_data(rows: Sequence[SatelliteData]) -> ValidationResult:
    if not rows:
        return ValidationResult(valid=False, errors=["Satellite observations are required"])

    errors: list[str] = []
    warnings: list[str] = []
    if len(rows) < SATELLITE_ROWS_MINIMUM:
        warnings.append(
            f"At least {SATELLITE_ROWS_MINIMUM} satellite observations are recommended, found {len(rows)}"
        )

    for index, row in enumerate(rows, start=1):
        prefix = f"Row {index}: "
        if not row.f_observation_date:
            errors.append(f"{prefix}observation date is required")
        _check_range(errors, prefix, "latitude", row.f_latitude, -90, 90, "deg")
        _check_range(errors, prefix, "longitude", row.f_longitude, -180, 180, "deg")
        _check_range(errors, prefix, "CO2 concentration", row.f_CO2_concentration, 0, MAX_CONCENTRATION_PPM, "ppm")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def check_completeness(payload: DataImportPayload) -> CompletenessCheck:
    """Summarize which wizard sections are ready for submission."""
    company_info = payload.company is not None and validate_company_info(payload.company).valid

    daily_count = len(payload.daily_data or [])
    daily_data = CountCheck(
        complete=daily_count == DAILY_ROWS_REQUIRED,
        count=daily_count,
        expected=DAILY_ROWS_REQUIRED,
    )

    scope2 = payload.scope2 is not None and validate_scope2_data(payload.scope2).valid

    dimension_count = len(payload.scope3.dimensions) if payload.scope3 else 0
    scope3 = CountCheck(
        complete=dimension_count == SCOPE3_DIMENSIONS_REQUIRED,
        count=dimension_count,
        expected=SCOPE3_DIMENSIONS_REQUIRED,
    )

    satellite_count = len(payload.satellite_data or [])
    satellite_data = CountCheck(
        complete=satellite_count >= SATELLITE_ROWS_MINIMUM,
        count=satellite_count,
        expected=SATELLITE_ROWS_MINIMUM,
    )

    return CompletenessCheck(
        company_info=company_info,
        daily_data=daily_data,
        scope2=scope2,
        scope3=scope3,
        satellite_data=satellite_data,
        overall_complete=(
            company_info
            and daily_data.complete
            and scope2
            and scope3.complete
            and satellite_data.complete
        ),
    )
