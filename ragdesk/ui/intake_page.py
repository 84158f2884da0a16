"""NiceGUI carbon data intake page.

Walks through company information, scope 1 daily measurements, scope 2
electricity, scope 3 dimensions and satellite observations, then submits
everything in one import. Existing companies can be loaded from the backend
and their generated report downloaded.
"""

import logging

from nicegui import ui
from pydantic import ValidationError

from ragdesk.api.client import get_api_client
from ragdesk.chat.errors import RagDeskError
from ragdesk.intake.generators import DEFAULT_CENTER_LAT, DEFAULT_CENTER_LON
from ragdesk.intake.wizard import IntakeWizard, WizardStep, company_names
from ragdesk.models.intake import (
    DAILY_ROWS_REQUIRED,
    INDUSTRIES,
    SATELLITE_ROWS_MINIMUM,
    CountCheck,
    ValidationResult,
)
from ragdesk.ui.theme import CUSTOM_CSS, render_header

logger = logging.getLogger(__name__)

# Notifications shown per failed step; the rest are summarized
MAX_NOTIFIED_ERRORS = 5

DAILY_COLUMNS = [
    {"name": "date", "label": "Date", "field": "f_date", "align": "left"},
    {"name": "vbg", "label": "Vbg (ppm)", "field": "f_vbg"},
    {"name": "vpeak", "label": "Vpeak (ppm)", "field": "f_vpeak"},
    {"name": "u", "label": "Wind (m/s)", "field": "f_u"},
    {"name": "delta_x", "label": "Δx (m)", "field": "f_delta_x"},
    {"name": "emissions", "label": "Emissions (tCO2)", "field": "f_daily_emissions"},
]

SATELLITE_COLUMNS = [
    {"name": "date", "label": "Date", "field": "f_observation_date", "align": "left"},
    {"name": "time", "label": "Time", "field": "f_observation_time"},
    {"name": "lat", "label": "Latitude", "field": "f_latitude"},
    {"name": "lon", "label": "Longitude", "field": "f_longitude"},
    {"name": "co2", "label": "CO2 (ppm)", "field": "f_CO2_concentration"},
]


def count_label(check: CountCheck) -> str:
    return f"{check.count} / {check.expected}"


@ui.page("/intake")
async def intake_page() -> None:
    """Carbon data intake wizard."""
    ui.add_head_html(CUSTOM_CSS)
    api = get_api_client()
    wizard = IntakeWizard()

    stepper: ui.stepper
    progress: ui.linear_progress
    company_select: ui.select
    containers: dict[WizardStep, ui.column] = {}

    async def run(action, failure: str) -> bool:
        try:
            await action
        except RagDeskError as e:
            logger.warning(f"{failure}: {e}")
            ui.notify(f"{failure}: {e}", type="negative")
            return False
        return True

    def notify_result(result: ValidationResult) -> None:
        for error in result.errors[:MAX_NOTIFIED_ERRORS]:
            ui.notify(error, type="negative")
        hidden = len(result.errors) - MAX_NOTIFIED_ERRORS
        if hidden > 0:
            ui.notify(f"... and {hidden} more errors", type="negative")
        for warning in result.warnings:
            ui.notify(warning, type="warning")

    def show_step() -> None:
        stepper.set_value(wizard.step.title)
        progress.set_value(wizard.progress)
        render(wizard.step)

    def go_next() -> None:
        result = wizard.next()
        notify_result(result)
        if result.valid:
            show_step()

    def go_back() -> None:
        wizard.previous()
        show_step()

    def generate(action) -> None:
        try:
            action()
        except RagDeskError as e:
            ui.notify(str(e), type="warning")
            return
        render(wizard.step)

    # -- backend lookups --------------------------------------------------

    async def load_companies() -> None:
        try:
            companies = await api.fetch_company_list()
        except RagDeskError as e:
            logger.error(f"Failed to load companies: {e}")
            ui.notify("Failed to load companies", type="negative")
            return
        company_select.set_options(company_names(companies))

    async def load_company() -> None:
        name = company_select.value
        if not name:
            ui.notify("Select a company first", type="warning")
            return
        try:
            data = await api.company_by_name(name)
        except RagDeskError as e:
            ui.notify(f"Failed to load {name}: {e}", type="negative")
            return
        if not data:
            ui.notify(f"No data found for {name}", type="warning")
            return
        try:
            wizard.load(data)
        except ValidationError as e:
            logger.warning(f"Unreadable company record for {name}: {e}")
            ui.notify(f"Could not read the data of {name}", type="negative")
            return
        wizard.step = WizardStep.COMPANY
        for step in WizardStep:
            render(step)
        show_step()

    async def download_report() -> None:
        name = company_select.value or wizard.company.f_company_name
        try:
            downloaded = await api.download_report(name)
        except RagDeskError as e:
            ui.notify(f"Download failed: {e}", type="negative")
            return
        ui.download.content(downloaded.content, downloaded.filename)

    async def submit() -> None:
        if await run(wizard.submit(api), "Submit failed"):
            ui.notify("Carbon data submitted", type="positive")
            render(WizardStep.REVIEW)

    # -- step bodies ------------------------------------------------------

    def render_company() -> None:
        company = wizard.company
        with ui.grid(columns=2).classes("w-full gap-4"):
            ui.input(
                "Company name",
                value=company.f_company_name,
                on_change=lambda e: setattr(wizard.company, "f_company_name", e.value or ""),
            )
            ui.input(
                "Company number",
                value=company.f_company_number,
                on_change=lambda e: setattr(wizard.company, "f_company_number", e.value or ""),
            )
            ui.select(
                list(INDUSTRIES),
                label="Industry",
                value=company.f_industry or None,
                on_change=lambda e: setattr(wizard.company, "f_industry", e.value or ""),
            )
            ui.input(
                "Region",
                value=company.f_region,
                on_change=lambda e: setattr(wizard.company, "f_region", e.value or ""),
            )
            ui.input(
                "Registration date",
                value=company.f_registration_date or "",
                on_change=lambda e: setattr(wizard.company, "f_registration_date", e.value or None),
            ).props("type=date stack-label")

    def render_daily() -> None:
        rows = wizard.daily_data
        with ui.row().classes("w-full items-center justify-between"):
            ui.label(f"{len(rows)} / {DAILY_ROWS_REQUIRED} days").classes("text-sm text-gray-500")
            ui.button(
                "Generate sample data", icon="auto_fix_high", on_click=lambda: generate(wizard.generate_daily)
            ).props("flat no-caps")
        if rows:
            ui.label(f"Scope 1 total: {wizard.totals().scope1:,.2f} tCO2").classes("text-sm font-medium")
            ui.table(
                columns=DAILY_COLUMNS,
                rows=[row.model_dump() for row in rows],
                row_key="f_date",
                pagination=10,
            ).classes("w-full").props("dense flat")
        else:
            ui.label("No daily data yet").classes("text-sm text-gray-400")

    def render_scope2() -> None:
        scope2 = wizard.scope2
        emissions: ui.label

        def update(consumption: float | None, factor: float | None = None) -> None:
            wizard.set_electricity(consumption, factor)
            value = wizard.scope2.f_scope2_emissions
            emissions.set_text("Scope 2 emissions: " + ("-" if value is None else f"{value:,.2f} tCO2"))

        with ui.grid(columns=3).classes("w-full gap-4"):
            ui.number("Year", value=scope2.f_year).props("readonly")
            ui.number(
                "Electricity consumption (kWh)",
                value=scope2.f_electricity_consumption,
                min=0,
                on_change=lambda e: update(e.value),
            )
            ui.number(
                "Emission factor (tCO2/MWh)",
                value=scope2.f_emission_factor,
                min=0,
                format="%.4f",
                on_change=lambda e: update(wizard.scope2.f_electricity_consumption, e.value),
            )
        with ui.row().classes("w-full items-center justify-between"):
            emissions = ui.label().classes("text-sm font-medium")
            ui.button(
                "Generate sample data", icon="auto_fix_high", on_click=lambda: generate(wizard.generate_scope2)
            ).props("flat no-caps")
        update(scope2.f_electricity_consumption)

    def render_scope3() -> None:
        total: ui.label

        def set_value(index: int, value: float | None) -> None:
            wizard.set_dimension_value(index, value)
            total.set_text(f"Scope 3 total: {wizard.scope3.f_scope3_total or 0:,.2f} tCO2")

        for index, dimension in enumerate(wizard.scope3.dimensions):
            with ui.row().classes("w-full gap-4 no-wrap items-end"):
                ui.input(
                    f"Dimension {index + 1}",
                    value=dimension.f_emission_dimension,
                    on_change=lambda e, d=dimension: setattr(d, "f_emission_dimension", e.value or ""),
                ).classes("flex-grow")
                ui.input(
                    "Category",
                    value=dimension.f_emission_type,
                    on_change=lambda e, d=dimension: setattr(d, "f_emission_type", e.value or ""),
                ).classes("w-40")
                ui.number(
                    "Emissions (tCO2)",
                    value=dimension.f_emission_value,
                    min=0,
                    on_change=lambda e, i=index: set_value(i, e.value),
                ).classes("w-48")
        total = ui.label(f"Scope 3 total: {wizard.scope3.f_scope3_total or 0:,.2f} tCO2").classes(
            "text-sm font-medium"
        )

    def render_satellite() -> None:
        rows = wizard.satellite_data
        with ui.row().classes("w-full gap-4 items-end"):
            lat = ui.number("Site latitude", value=DEFAULT_CENTER_LAT, min=-90, max=90, format="%.4f")
            lon = ui.number("Site longitude", value=DEFAULT_CENTER_LON, min=-180, max=180, format="%.4f")
            count = ui.number("Observations", value=SATELLITE_ROWS_MINIMUM, min=1, step=1, format="%d")
            ui.button(
                "Generate sample data",
                icon="auto_fix_high",
                on_click=lambda: generate(
                    lambda: wizard.generate_satellite(
                        center_lat=lat.value or 0.0,
                        center_lon=lon.value or 0.0,
                        count=int(count.value or SATELLITE_ROWS_MINIMUM),
                    )
                ),
            ).props("flat no-caps")
        ui.label(f"{len(rows)} observations (at least {SATELLITE_ROWS_MINIMUM})").classes(
            "text-sm text-gray-500"
        )
        if rows:
            ui.table(columns=SATELLITE_COLUMNS, rows=[row.model_dump() for row in rows], pagination=10).classes(
                "w-full"
            ).props("dense flat")

    def render_review() -> None:
        wizard.sync_company()
        check = wizard.completeness()
        totals = wizard.totals()
        company = wizard.company

        def status(done: bool, label: str, detail: str = "") -> None:
            with ui.row().classes("items-center gap-2"):
                ui.icon("check_circle" if done else "error").classes(
                    "text-green-600" if done else "text-red-500"
                )
                ui.label(label).classes("text-sm")
                if detail:
                    ui.label(detail).classes("text-xs text-gray-500")

        ui.label(f"{company.f_company_name or '-'} ({company.f_company_number or '-'})").classes(
            "text-lg font-semibold"
        )
        ui.label(f"{company.f_industry or '-'} · {company.f_region or '-'}").classes("text-sm text-gray-500")

        with ui.grid(columns=2).classes("w-full gap-2"):
            status(check.company_info, "Company information")
            status(check.daily_data.complete, "Daily data", count_label(check.daily_data))
            status(check.scope2, "Scope 2")
            status(check.scope3.complete, "Scope 3", count_label(check.scope3))
            status(check.satellite_data.complete, "Satellite data", count_label(check.satellite_data))

        with ui.grid(columns=4).classes("w-full gap-2 pt-2"):
            for label, value in (
                ("Scope 1", totals.scope1),
                ("Scope 2", totals.scope2),
                ("Scope 3", totals.scope3),
                ("Total", totals.total),
            ):
                with ui.column().classes("gap-0 border rounded-lg px-3 py-2"):
                    ui.label(label).classes("text-xs text-gray-500")
                    ui.label(f"{value:,.2f} tCO2").classes("text-sm font-semibold")

        with ui.row().classes("w-full justify-end gap-2 pt-2"):
            if wizard.submitted:
                ui.button("Download report", icon="download", on_click=download_report).props("outline no-caps")
            submit_btn = ui.button("Submit", icon="cloud_upload", on_click=submit)
            if not check.overall_complete:
                submit_btn.disable()

    renderers = {
        WizardStep.COMPANY: render_company,
        WizardStep.DAILY: render_daily,
        WizardStep.SCOPE2: render_scope2,
        WizardStep.SCOPE3: render_scope3,
        WizardStep.SATELLITE: render_satellite,
        WizardStep.REVIEW: render_review,
    }

    def render(step: WizardStep) -> None:
        container = containers[step]
        container.clear()
        with container:
            renderers[step]()

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-5xl mx-auto app-container"),
    ):
        with render_header("Carbon Data Intake", "eco"):
            company_select = (
                ui.select([], label="Company", with_input=True)
                .props("dense outlined dark options-dense")
                .classes("w-48")
            )
            ui.button(icon="file_open", on_click=load_company).props("flat round color=white")
            ui.button(icon="description", on_click=download_report).props("flat round color=white")
            ui.button(icon="chat").props("flat round color=white").on("click", lambda: ui.navigate.to("/"))

        progress = ui.linear_progress(value=wizard.progress, show_value=False)

        with ui.stepper(value=WizardStep.COMPANY.title).props("vertical flat").classes("w-full") as stepper:
            for step in WizardStep:
                with ui.step(step.title):
                    containers[step] = ui.column().classes("w-full gap-3")
                    with ui.stepper_navigation():
                        if step < WizardStep.REVIEW:
                            ui.button("Next", on_click=go_next)
                        if step > WizardStep.COMPANY:
                            ui.button("Back", on_click=go_back).props("flat")

    render(WizardStep.COMPANY)
    await load_companies()
