"""Carbon emissions intake payload.

Field names match the backend's import contract, so models serialize
directly into the body of POST /import_carbon_data.
"""

from pydantic import BaseModel, ConfigDict, Field

DAILY_ROWS_REQUIRED = 366
SCOPE3_DIMENSIONS_REQUIRED = 4
SATELLITE_ROWS_MINIMUM = 800
REPORTING_YEAR = 2024
# tCO2 per MWh of purchased grid electricity
GRID_EMISSION_FACTOR = 0.4419

# Editable starting rows for the scope 3 step, as (dimension, category)
DEFAULT_SCOPE3_DIMENSIONS = (
    ("Purchased goods and services", "Upstream"),
    ("Upstream transportation and distribution", "Upstream"),
    ("Business travel", "Upstream"),
    ("Use of sold products", "Downstream"),
)

INDUSTRIES = (
    "金融机构（以商业银行为例）",
    "交通运输业（以航空公司为例）",
    "数字科技行业（以云服务/互联网公司为例）",
    "新材料行业（以先进化工材料/复合材料为例）",
    "制造业（以汽车制造为例）",
    "电子信息业（以智能手机制造为例）",
    "医疗行业（以大型综合医院为例）",
    "电力行业（以火电厂为例）",
)


class CompanyInfo(BaseModel):
    f_company_name: str = ""
    f_company_number: str = ""
    f_industry: str = ""
    f_region: str = ""
    f_registration_date: str | None = None


class DailyData(BaseModel):
    """One day of scope 1 plume measurements."""

    f_id: int | None = None
    f_company_number: str = ""
    f_date: str | None = None
    f_vbg: float | None = None
    f_vpeak: float | None = None
    f_vpeak_vbg: float | None = None
    f_u: float | None = None
    f_delta_x: float | None = None
    f_c_sector: float | None = None
    f_k: float | None = None
    f_a: float | None = None
    f_daily_emissions: float | None = None


class Scope2Data(BaseModel):
    """Annual purchased electricity."""

    f_id: int | None = None
    f_company_number: str = ""
    f_year: int | None = None
    f_electricity_consumption: float | None = None
    f_emission_factor: float | None = None
    f_scope2_emissions: float | None = None


class Scope3Variable(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="名称")
    value: float = Field(alias="数值")
    unit: str = Field(default="", alias="单位")


class Scope3Dimension(BaseModel):
    f_emission_dimension: str
    f_emission_type: str = ""
    f_emission_detail: list[Scope3Variable] = Field(default_factory=list)
    f_calculation_formula: str = ""
    f_deduction_explanation: str | None = None
    f_emission_value: float | None = None


class Scope3Data(BaseModel):
    """Industry specific value-chain emissions for one year."""

    f_id: int | None = None
    f_company_number: str = ""
    f_company_name: str = ""
    f_company_industry: str = ""
    f_year: int | None = None
    dimensions: list[Scope3Dimension] = Field(default_factory=list)
    f_scope3_total: float | None = None


class SatelliteData(BaseModel):
    f_id: int | None = None
    f_company_number: str = ""
    f_observation_date: str | None = None
    f_latitude: float | None = None
    f_longitude: float | None = None
    f_CO2_concentration: float | None = None
    f_observation_time: str | None = None


class DataImportPayload(BaseModel):
    """Everything submitted in one import transaction.

    All sections are optional so partially filled wizards can be checked
    for completeness.
    """

    model_config = ConfigDict(populate_by_name=True)

    company: CompanyInfo | None = None
    daily_data: list[DailyData] | None = Field(default=None, alias="dailyData")
    scope2: Scope2Data | None = None
    scope3: Scope3Data | None = None
    satellite_data: list[SatelliteData] | None = Field(default=None, alias="satelliteData")
    user_id: str | int | None = None


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class CountCheck(BaseModel):
    complete: bool
    count: int
    expected: int


class CompletenessCheck(BaseModel):
    company_info: bool
    daily_data: CountCheck
    scope2: bool
    scope3: CountCheck
    satellite_data: CountCheck
    overall_complete: bool


class EmissionTotals(BaseModel):
    """Emissions per scope in tCO2, as shown before submission."""

    scope1: float = 0.0
    scope2: float = 0.0
    scope3: float = 0.0

    @property
    def total(self) -> float:
        return self.scope1 + self.scope2 + self.scope3
