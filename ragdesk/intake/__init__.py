"""Carbon emissions data intake.

Validation rules for the company, scope 1 daily, scope 2, scope 3 and
satellite observation sections, sample data generators, and the step-by-step
IntakeWizard that submits through ``RagApiClient.import_carbon_data``.
"""

from ragdesk.intake.generators import (
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
from ragdesk.intake.wizard import IntakeWizard, WizardStep

__all__ = [
    "IntakeWizard",
    "WizardStep",
    "check_completeness",
    "generate_daily_data",
    "generate_satellite_data",
    "generate_scope2_data",
    "scope2_emissions",
    "validate_company_info",
    "validate_daily_data",
    "validate_satellite_data",
    "validate_scope2_data",
    "validate_scope3_data",
]
