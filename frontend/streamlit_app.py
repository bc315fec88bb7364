import streamlit as st
from dataclasses import dataclass
from typing import Callable, List, Dict

from modules.general import (
    display_home_page,
    display_guide_check_page,
)
from modules.migration import (
    display_transpile_page,
    display_sql_conversion_page,
)

# --- Page Configuration & Session State Initialization ---
st.set_page_config(layout="wide", page_title="DorisLift - SparkSQL to Doris Migration")

# Hide the (irrelevant) Streamlit "Deploy" button in local runs
hide_streamlit_style = """
            <style>
            /* Hide deploy button from toolbar if present */
            div[data-testid="stToolbar"] button[title*="Deploy"] {
                display: none !important;
            }
            </style>
            """
st.markdown(hide_streamlit_style, unsafe_allow_html=True)

if 'transpile_result' not in st.session_state: # To store results from sql/transpile or sql/batch
    st.session_state.transpile_result = None
if 'conversion_data' not in st.session_state: # To store results from sql/convert
    st.session_state.conversion_data = None
if 'guide_result' not in st.session_state: # To store results from guide/check
    st.session_state.guide_result = None
if 'current_page' not in st.session_state:
    st.session_state.current_page = "Home"


@dataclass
class Page:
    title: str
    render: Callable[[], None]
    category: str  # e.g. "Migration", "Documentation", "General"

# Registry of available pages; add/remove entries as needed
PAGES: List[Page] = [
    Page("Home", display_home_page, "General"),
    Page("Transpile SQL", display_transpile_page, "Migration"),
    Page("Convert Directory", display_sql_conversion_page, "Migration"),
    Page("Check Migration Guide", display_guide_check_page, "Documentation"),
]

# Utility: map title -> Page for quick lookup
_PAGE_MAP: Dict[str, Page] = {p.title: p for p in PAGES}

CATEGORY_HEADERS = {
    "Migration": "Migration Tools",
    "Documentation": "Documentation Tools",
}


def _render_sidebar():
    """Render sidebar navigation dynamically from the PAGES registry."""
    pages_by_cat: Dict[str, List[Page]] = {}
    for page in PAGES:
        if page.category != "General":
            pages_by_cat.setdefault(page.category, []).append(page)

    # Home shortcut
    if st.sidebar.button("Home", key="nav_btn_home_main", type="primary" if st.session_state.current_page == "Home" else "secondary", use_container_width=True):
        st.session_state.current_page = "Home"
        st.rerun()

    for category, pages in pages_by_cat.items():
        st.sidebar.markdown(f"**{CATEGORY_HEADERS.get(category, category)}**")
        for page in pages:
            btn_key = f"nav_btn_{page.title.replace(' ', '_').lower()}"
            btn_type = "primary" if st.session_state.current_page == page.title else "secondary"
            if st.sidebar.button(page.title, key=btn_key, type=btn_type, use_container_width=True):
                st.session_state.current_page = page.title
                st.rerun()

# ------------------------------------------------------------------
# Main application dispatch
# ------------------------------------------------------------------

if st.session_state.current_page not in _PAGE_MAP:
    st.session_state.current_page = "Home"

_render_sidebar()

# Finally render the chosen page
_PAGE_MAP[st.session_state.current_page].render()
