"""
Streamlit Frontend for EcoForecast

The user interface for entering a clinic's quarterly resource usage
(electricity, water, fuel) and what was paid for it.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Live feedback: the spend preview updates on every edit
3. Clear error messages naming the field to fix
4. Nothing is saved without an explicit "Save & Continue"

All form logic lives in the controllers; this module only renders their
state and forwards user actions.
"""

import asyncio
from typing import Optional

import streamlit as st

from ecoforecast.controller import (
    FourQuarterFormController,
    InputsFormController,
    create_app_components,
)
from ecoforecast.models.inputs import (
    InputsDoc,
    Pending,
    Period,
    Quarter,
    QuarterlyFigures,
    QuarterlyInputs,
    ResourceCategory,
    ResourceField,
    SpendPreview,
)
from ecoforecast.preview import format_spend
from ecoforecast.services.storage import StorageError


PAGES = ["📝 Inputs", "📊 Outputs", "📅 Four Quarters", "⚙️ Settings"]


# Page configuration
st.set_page_config(
    page_title="EcoForecast",
    page_icon="🌱",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #b00020;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create the shared storage and audit logger (cached)."""
    return create_app_components()


def field_text(draft: QuarterlyInputs, category: ResourceCategory, field: ResourceField) -> str:
    """Text shown in an input box for one draft field."""
    value = draft.resource(category).get(field)
    if isinstance(value, Pending):
        return ""
    number = value.value
    if number == number and number.is_integer():
        return str(int(number))
    return str(number)


def widget_key(prefix: str, category: ResourceCategory, field: ResourceField) -> str:
    return f"{prefix}_{category.value}_{field.value}"


def sync_widgets(prefix: str, draft: QuarterlyInputs) -> None:
    """Copy draft values into the input widgets after a clear or load."""
    for category in ResourceCategory:
        for field in ResourceField:
            st.session_state[widget_key(prefix, category, field)] = field_text(
                draft, category, field
            )


def go_to(page: str) -> None:
    st.session_state.next_page = page


def get_inputs_controller() -> InputsFormController:
    if "inputs_controller" not in st.session_state:
        storage, audit_logger = get_components()
        st.session_state.inputs_controller = InputsFormController(
            storage,
            audit_logger=audit_logger,
            on_saved=lambda doc_id: go_to("📊 Outputs"),
        )
    return st.session_state.inputs_controller


def get_four_quarter_controller() -> FourQuarterFormController:
    if "four_quarter_controller" not in st.session_state:
        storage, audit_logger = get_components()
        st.session_state.four_quarter_controller = FourQuarterFormController(
            storage,
            audit_logger=audit_logger,
        )
    return st.session_state.four_quarter_controller


def main():
    """Main application entry point."""
    # Navigation requested by a callback must be applied before the radio renders
    if "next_page" in st.session_state:
        st.session_state.page = st.session_state.pop("next_page")

    st.sidebar.title("🌱 EcoForecast")
    st.sidebar.markdown("---")

    page = st.sidebar.radio("Navigate to:", PAGES, key="page")

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Enter this quarter's usage and amount paid
        2. Check the spend preview
        3. Save & Continue to see your outputs
        """
    )

    if page == "📝 Inputs":
        render_inputs_page(get_inputs_controller())
    elif page == "📊 Outputs":
        render_outputs_page()
    elif page == "📅 Four Quarters":
        render_four_quarter_page(get_four_quarter_controller())
    elif page == "⚙️ Settings":
        render_settings_page()


def render_messages(error: str, success: str) -> None:
    if error:
        st.markdown(f"""
        <div class="error-box">
            <p>{error}</p>
        </div>
        """, unsafe_allow_html=True)
    if success:
        st.markdown(f"""
        <div class="success-box">
            <p>{success}</p>
        </div>
        """, unsafe_allow_html=True)


def render_resource_rows(prefix: str, on_edit) -> None:
    """One row per category: label with unit hint, usage, amount paid."""
    header = st.columns([2, 3, 3])
    header[0].markdown("**Category**")
    header[1].markdown("**Usage (Quarter)**")
    header[2].markdown("**Amount Paid (Quarter)**")

    for category in ResourceCategory:
        cols = st.columns([2, 3, 3])
        cols[0].markdown(f"{category.label} *({category.usage_hint})*")
        for col, field in zip(cols[1:], ResourceField):
            key = widget_key(prefix, category, field)
            col.text_input(
                f"{category.label} {field.label}",
                key=key,
                label_visibility="collapsed",
                on_change=on_edit,
                args=(category, field, key),
            )


def render_preview(preview: SpendPreview, title: str = "Quarterly Spend Preview:") -> None:
    st.markdown(f"**{title}**")
    cols = st.columns(4)
    for col, category in zip(cols, ResourceCategory):
        col.metric(category.label, format_spend(preview.for_category(category)))
    cols[3].metric("Total", format_spend(preview.total))


def render_inputs_page(controller: InputsFormController):
    """Render the quarterly inputs form."""
    st.title("Quarterly Inputs (3 months)")
    st.markdown("Enter clinic resource usage and how much you paid this quarter.")

    # Prefill from the latest saved quarter once per session
    if not st.session_state.get("latest_loaded"):
        st.session_state.latest_loaded = True
        with st.spinner("Loading latest saved inputs..."):
            run_async(controller.load_latest())
        sync_widgets("inputs", controller.draft)

    render_messages(controller.error, controller.success)

    def on_edit(category, field, key):
        controller.update_field(category, field, st.session_state[key])

    render_resource_rows("inputs", on_edit)

    st.markdown("---")
    render_preview(controller.preview)

    def on_clear():
        controller.clear()
        sync_widgets("inputs", controller.draft)

    def on_save():
        run_async(controller.save())

    col1, col2 = st.columns(2)
    with col1:
        st.button("🧹 Clear", on_click=on_clear, disabled=controller.saving)
    with col2:
        st.button(
            "Saving..." if controller.saving else "💾 Save & Continue",
            type="primary",
            on_click=on_save,
            disabled=controller.saving,
        )


def render_figures(figures: QuarterlyFigures) -> None:
    rows = [
        {
            "Category": category.label,
            "Usage": figures.resource(category).usage,
            "Unit": category.usage_hint,
            "Amount Paid": format_spend(figures.resource(category).amount_paid),
        }
        for category in ResourceCategory
    ]
    st.table(rows)
    st.metric("Total Spend", format_spend(figures.total_spend))


def render_outputs_page():
    """Render the last saved (or latest) quarterly inputs."""
    st.title("📊 Outputs")

    storage, _ = get_components()
    controller = get_inputs_controller()

    document: Optional[InputsDoc] = None
    try:
        if controller.last_saved_id:
            document = run_async(storage.find_by_id(controller.last_saved_id))
        else:
            document = run_async(storage.find_latest({"period": Period.QUARTERLY}))
    except StorageError as e:
        st.error(f"Failed to fetch inputs: {e}")
        return

    if document is None:
        st.markdown("""
        <div class="info-box">
            <p>No inputs saved yet. Use the 'Inputs' page to add your first quarter.</p>
        </div>
        """, unsafe_allow_html=True)
        return

    if controller.success:
        render_messages("", controller.success)

    st.markdown(
        f"**Year:** {document.year} &nbsp;&nbsp; "
        f"**Saved:** {document.created_at:%d %B %Y %H:%M} UTC &nbsp;&nbsp; "
        f"**Id:** `{document.id}`"
    )
    render_figures(document.inputs)


def render_four_quarter_page(controller: FourQuarterFormController):
    """Render the Q1-Q4 form for one company."""
    st.title("📅 Four-Quarter Inputs")
    st.markdown("Enter all four quarters of a year for one company.")

    def on_company():
        controller.set_company(st.session_state.fq_company)

    def on_year():
        controller.set_year(st.session_state.fq_year)

    def on_load():
        run_async(controller.load_latest(company=st.session_state.get("fq_company")))
        st.session_state.fq_company = controller.company
        st.session_state.fq_year = controller.year
        for quarter in Quarter:
            sync_widgets(f"fq_{quarter.value}", controller.drafts[quarter])

    if "fq_year" not in st.session_state:
        st.session_state.fq_year = controller.year

    col1, col2, col3 = st.columns([3, 2, 2])
    with col1:
        st.text_input("Company *", key="fq_company", on_change=on_company)
    with col2:
        st.number_input(
            "Year *",
            min_value=1,
            max_value=9999,
            step=1,
            key="fq_year",
            on_change=on_year,
        )
    with col3:
        st.button("⬇️ Load Latest", on_click=on_load)

    render_messages(controller.error, controller.success)

    tabs = st.tabs([quarter.label for quarter in Quarter])
    for tab, quarter in zip(tabs, Quarter):
        with tab:
            def on_edit(category, field, key, quarter=quarter):
                controller.update_field(quarter, category, field, st.session_state[key])

            render_resource_rows(f"fq_{quarter.value}", on_edit)
            render_preview(controller.preview(quarter), title=f"{quarter.label} Spend Preview:")

    st.markdown("---")
    st.metric("Annual Total", format_spend(controller.annual_total))

    def on_clear():
        controller.clear()
        for quarter in Quarter:
            sync_widgets(f"fq_{quarter.value}", controller.drafts[quarter])

    def on_save():
        run_async(controller.save())

    col1, col2 = st.columns(2)
    with col1:
        st.button("🧹 Clear", key="fq_clear", on_click=on_clear, disabled=controller.saving)
    with col2:
        st.button(
            "💾 Save",
            key="fq_save",
            type="primary",
            on_click=on_save,
            disabled=controller.saving,
        )


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    from ecoforecast.config import get_settings, validate_all_settings

    status = validate_all_settings()

    services = [
        ("Application", "app"),
        ("Google Sheets (Storage)", "google_sheets"),
    ]

    for name, key in services:
        if key not in status:
            continue
        if status[key]:
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if status.get("app"):
        app_settings = get_settings().app
        st.markdown(f"**Storage backend:** `{app_settings.storage_backend}`")
        if app_settings.storage_backend == "http":
            st.markdown(f"**API:** `{app_settings.api_base_url}`")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
