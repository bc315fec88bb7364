# Subpackage aggregating Streamlit page renderers

from .general import (
    display_home_page,
    display_guide_check_page,
)
from .migration import (
    display_transpile_page,
    display_sql_conversion_page,
)

__all__ = [
    "display_home_page",
    "display_guide_check_page",
    "display_transpile_page",
    "display_sql_conversion_page",
]
