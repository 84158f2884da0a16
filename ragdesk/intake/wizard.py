"""State of the multi-step carbon data intake.

The intake page renders one step at a time. IntakeWizard holds the sections
being filled in, validates the current step before moving on and only
submits once every section passes the completeness check.
"""

import logging
import random
from enum import IntEnum
from typing import Any

from ragdesk.api.client import RagApiClient
from ragdesk.chat.errors import PreconditionError
from ragdesk.config import ClientConfig, get_client_config
from ragdesk.intake.generators import (
    DEFAULT_CENTER_LAT,
    DEFAULT_CENTER_LON,
    generate_daily_data,
    generate_satellite_data,
    generate_scope2_data,
    scope2_emissions,
)
from ragdesk.intake.validators import (
    check_completeness,
    validate_company_info,
    validate_daily_data,
    validate_satellite_data,
    validate_scope2_data,
    validate_scope3_data,
)
from ragdesk.models.intake import (
    DEFAULT_SCOPE3_DIMENSIONS,
    GRID_EMISSION_FACTOR,
    REPORTING_YEAR,
    SATELLITE_ROWS_MINIMUM,
    CompanyInfo,
    CompletenessCheck,
    DailyData,
    DataImportPayload,
    EmissionTotals,
    SatelliteData,
    Scope2Data,
    Scope3Data,
    Scope3Dimension,
    ValidationResult,
)

logger = logging.getLogger(__name__)


class WizardStep(IntEnum):
    COMPANY = 1
    DAILY = 2
    SCOPE2 = 3
    SCOPE3 = 4
    SATELLITE = 5
    REVIEW = 6

    @property
    def title(self) -> str:
        return STEP_TITLES[self]


STEP_TITLES = {
    WizardStep.COMPANY: "Company",
    WizardStep.DAILY: "Daily data",
    WizardStep.SCOPE2: "Scope 2",
    WizardStep.SCOPE3: "Scope 3",
    WizardStep.SATELLITE: "Satellite data",
    WizardStep.REVIEW: "Review",
}


def company_names(companies: list[dict[str, Any]]) -> list[str]:
    """Names from the company list endpoint, in order and without duplicates."""
    names: list[str] = []
    for item in companies:
        name = item.get("f_company_name") or item.get("company_name") or item.get("name")
        if isinstance(name, str) and name.strip() and name.strip() not in names:
            names.append(name.strip())
    return names


def emission_totals(payload: DataImportPayload) -> EmissionTotals:
    """Per-scope totals: summed daily emissions, scope 2 and scope 3."""
    scope1 = sum(row.f_daily_emissions or 0.0 for row in payload.daily_data or [])
    scope2 = payload.scope2.f_scope2_emissions if payload.scope2 else None
    scope3 = payload.scope3.f_scope3_total if payload.scope3 else None
    return EmissionTotals(
        scope1=round(scope1, 2),
        scope2=scope2 or 0.0,
        scope3=scope3 or 0.0,
    )


def incomplete_sections(check: CompletenessCheck) -> list[str]:
    sections = []
    if not check.company_info:
        sections.append(STEP_TITLES[WizardStep.COMPANY])
    if not check.daily_data.complete:
        sections.append(STEP_TITLES[WizardStep.DAILY])
    if not check.scope2:
        sections.append(STEP_TITLES[WizardStep.SCOPE2])
    if not check.scope3.complete:
        sections.append(STEP_TITLES[WizardStep.SCOPE3])
    if not check.satellite_data.complete:
        sections.append(STEP_TITLES[WizardStep.SATELLITE])
    return sections


def _default_scope3() -> Scope3Data:
    return Scope3Data(
        f_year=REPORTING_YEAR,
        dimensions=[
            Scope3Dimension(f_emission_dimension=name, f_emission_type=category, f_emission_value=0.0)
            for name, category in DEFAULT_SCOPE3_DIMENSIONS
        ],
        f_scope3_total=0.0,
    )


class IntakeWizard:
    """Sections of one carbon data submission and the current step.

    Args:
        config: Supplies the emission constants for generated data and the
            submitting user id. Loads from environment if not provided.
    """

    def __init__(self, config: ClientConfig | None = None) -> None:
        self._config = config or get_client_config()
        self.reset()

    def reset(self) -> None:
        self.step = WizardStep.COMPANY
        self.company = CompanyInfo()
        self.daily_data: list[DailyData] = []
        self.scope2 = Scope2Data(f_year=REPORTING_YEAR, f_emission_factor=GRID_EMISSION_FACTOR)
        self.scope3 = _default_scope3()
        self.satellite_data: list[SatelliteData] = []
        self.submitted = False

    @property
    def progress(self) -> float:
        """Fraction of the steps reached, 1.0 on the review step."""
        return self.step / len(WizardStep)

    def sync_company(self) -> None:
        """Copy the company identity into every dependent section."""
        number = self.company.f_company_number.strip()
        self.scope2.f_company_number = number
        self.scope3.f_company_number = number
        self.scope3.f_company_name = self.company.f_company_name.strip()
        self.scope3.f_company_industry = self.company.f_industry
        for row in self.daily_data:
            row.f_company_number = number
        for row in self.satellite_data:
            row.f_company_number = number

    # -- navigation -------------------------------------------------------

    def validate_step(self, step: WizardStep | None = None) -> ValidationResult:
        step = self.step if step is None else step
        if step == WizardStep.COMPANY:
            return validate_company_info(self.company)
        if step == WizardStep.DAILY:
            return validate_daily_data(self.daily_data)
        if step == WizardStep.SCOPE2:
            return validate_scope2_data(self.scope2)
        if step == WizardStep.SCOPE3:
            return validate_scope3_data(self.scope3)
        if step == WizardStep.SATELLITE:
            return validate_satellite_data(self.satellite_data)

        missing = incomplete_sections(self.completeness())
        return ValidationResult(
            valid=not missing,
            errors=[f"{section} is incomplete" for section in missing],
        )

    def next(self) -> ValidationResult:
        """Validate the current step and advance if it passes."""
        self.sync_company()
        result = self.validate_step()
        if result.valid and self.step < WizardStep.REVIEW:
            self.step = WizardStep(self.step + 1)
        elif not result.valid:
            logger.debug(f"Step {self.step.title} has {len(result.errors)} errors")
        return result

    def previous(self) -> None:
        if self.step > WizardStep.COMPANY:
            self.step = WizardStep(self.step - 1)

    # -- editing ----------------------------------------------------------

    def set_electricity(self, consumption: float | None, factor: float | None = None) -> None:
        """Update scope 2 input and recompute its emissions."""
        if factor is not None:
            self.scope2.f_emission_factor = factor
        self.scope2.f_electricity_consumption = consumption
        if consumption is None:
            self.scope2.f_scope2_emissions = None
        else:
            self.scope2.f_scope2_emissions = scope2_emissions(
                consumption, self.scope2.f_emission_factor or GRID_EMISSION_FACTOR
            )

    def set_dimension_value(self, index: int, value: float | None) -> None:
        """Update one scope 3 dimension and recompute the scope 3 total."""
        self.scope3.dimensions[index].f_emission_value = value
        self.scope3.f_scope3_total = round(
            sum(d.f_emission_value or 0.0 for d in self.scope3.dimensions), 2
        )

    def _require_company(self, industry: bool = False) -> None:
        if not self.company.f_company_number.strip():
            raise PreconditionError("Please fill in the company number first")
        if industry and not self.company.f_industry:
            raise PreconditionError("Please select an industry first")

    def generate_daily(self, rng: random.Random | None = None) -> None:
        self._require_company(industry=True)
        self.daily_data = generate_daily_data(
            self.company.f_company_number.strip(),
            self.company.f_industry,
            year=self.scope2.f_year or REPORTING_YEAR,
            config=self._config,
            rng=rng,
        )

    def generate_scope2(self, rng: random.Random | None = None) -> None:
        self._require_company()
        self.scope2 = generate_scope2_data(
            self.company.f_company_number.strip(),
            year=self.scope2.f_year or REPORTING_YEAR,
            rng=rng,
        )

    def generate_satellite(
        self,
        center_lat: float = DEFAULT_CENTER_LAT,
        center_lon: float = DEFAULT_CENTER_LON,
        count: int = SATELLITE_ROWS_MINIMUM,
        rng: random.Random | None = None,
    ) -> None:
        self._require_company()
        self.satellite_data = generate_satellite_data(
            self.company.f_company_number.strip(),
            center_lat=center_lat,
            center_lon=center_lon,
            count=count,
            year=self.scope2.f_year or REPORTING_YEAR,
            rng=rng,
        )

    def load(self, data: dict[str, Any]) -> None:
        """Prefill from a company record.

        A record with a ``company`` key is read as a full import payload;
        anything else as bare company information.
        """
        if "company" in data:
            payload = DataImportPayload.model_validate(data)
            self.company = payload.company or CompanyInfo()
            self.daily_data = payload.daily_data or []
            self.satellite_data = payload.satellite_data or []
            if payload.scope2 is not None:
                self.scope2 = payload.scope2
            if payload.scope3 is not None and payload.scope3.dimensions:
                self.scope3 = payload.scope3
        else:
            self.company = CompanyInfo.model_validate(data)
        self.sync_company()

    # -- submission -------------------------------------------------------

    def payload(self) -> DataImportPayload:
        return DataImportPayload(
            company=self.company,
            daily_data=self.daily_data,
            scope2=self.scope2,
            scope3=self.scope3,
            satellite_data=self.satellite_data,
        )

    def completeness(self) -> CompletenessCheck:
        return check_completeness(self.payload())

    def totals(self) -> EmissionTotals:
        return emission_totals(self.payload())

    async def submit(self, api: RagApiClient) -> Any:
        """Import every section in one request.

        Raises:
            PreconditionError: Company information is missing or a section
                is incomplete. Nothing is sent.
            TransportError: Network failure or non-2xx status.
            ApiError: The backend rejected the import.
        """
        self.sync_company()
        if not validate_company_info(self.company).valid:
            raise PreconditionError("Please fill in the company information first")
        missing = incomplete_sections(self.completeness())
        if missing:
            raise PreconditionError(f"Data is incomplete: {', '.join(missing)}")

        result = await api.import_carbon_data(self.payload(), user_id=self._config.user_id)
        self.submitted = True
        logger.info(f"Submitted carbon data for {self.company.f_company_name}")
        return result
