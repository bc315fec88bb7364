import streamlit as st

from utils import (
    list_dialects_api,
    transpile_sql_api,
    transpile_batch_api,
    sql_convert_api,
    create_zip_from_directory,
    get_file_content,
    DEFAULT_SOURCE_DIALECT,
    DEFAULT_TARGET_DIALECT,
)

__all__ = [
    "display_transpile_page",
    "display_sql_conversion_page",
]


def _dialect_selectors(key_prefix):
    dialects = list_dialects_api()
    col1, col2 = st.columns(2)
    source = col1.selectbox(
        "Source dialect", dialects,
        index=dialects.index(DEFAULT_SOURCE_DIALECT) if DEFAULT_SOURCE_DIALECT in dialects else 0,
        key=f"{key_prefix}_source",
    )
    target = col2.selectbox(
        "Target dialect", dialects,
        index=dialects.index(DEFAULT_TARGET_DIALECT) if DEFAULT_TARGET_DIALECT in dialects else 0,
        key=f"{key_prefix}_target",
    )
    return source, target


def display_transpile_page():
    st.header("Transpile SQL")
    source, target = _dialect_selectors("tr")

    batch_mode = st.checkbox("Batch mode (one query per line)", key="tr_batch")
    pretty = st.checkbox("Pretty print", value=True, key="tr_pretty")
    sql_text = st.text_area("SQL", height=240, key="tr_sql",
                            placeholder="SELECT id, shiftleft(flags, 2) FROM events DISTRIBUTE BY id")

    if st.button("Transpile", key="tr_button", type="primary"):
        if not sql_text.strip():
            st.warning("Enter some SQL first.")
            return
        with st.spinner("Transpiling…"):
            if batch_mode:
                items = [line for line in sql_text.splitlines() if line.strip()]
                st.session_state.transpile_result = transpile_batch_api(items, source, target, pretty=pretty)
            else:
                st.session_state.transpile_result = transpile_sql_api(sql_text, source, target, pretty=pretty)

    result = st.session_state.get("transpile_result")
    if not result:
        return
    if result.get("error"):
        st.error(f"Error: {result['error']}")
        if result.get("details"):
            st.code(result["details"], language="sql")
        return

    if "results" in result:
        st.info(result.get("message", ""))
        for item in result["results"]:
            if item["status"] == "success":
                st.code(";\n".join(item["converted_sql"]), language="sql")
            else:
                st.error(f"Item {item['id']}: {item['error']}")
    else:
        st.code(result.get("sql", ""), language="sql")


def display_sql_conversion_page():
    st.header("Convert Directory")
    source, target = _dialect_selectors("conv")

    input_path = st.text_input("Input directory or .sql file (path on the API server)", key="conv_input_path")
    output_dir = st.text_input("Output directory (optional, defaults to workspace/converted/...)", key="conv_output_dir")
    generate_cleanup = st.checkbox("Generate 00_cleanup.sql", value=False, key="conv_cleanup")

    if st.button("Run Conversion", key="conv_button", type="primary"):
        if not input_path.strip():
            st.warning("Enter an input path.")
        else:
            with st.spinner("Converting SQL files…"):
                st.session_state.conversion_data = sql_convert_api(
                    input_path.strip(), source, target,
                    output_dir=output_dir.strip() or None,
                    generate_cleanup=generate_cleanup,
                )

    result = st.session_state.get("conversion_data")
    if not result:
        return
    if result.get("error"):
        st.error(f"Error: {result['error']}")
        return

    status = result.get("status")
    message = result.get("message", "")
    if status == "success":
        st.success(message)
    elif status == "partial_success":
        st.warning(message)
    else:
        st.error(message)

    if result.get("duration_s") is not None:
        st.caption(f"Finished in {result['duration_s']} s")
    st.json(result.get("stats", {}))
    st.dataframe(result.get("file_results", []), use_container_width=True)

    if result.get("manual_review_file"):
        with st.expander("Manual review items"):
            st.code(get_file_content(result["manual_review_file"]), language="json")

    output_dir_abs = result.get("output_dir")
    if output_dir_abs:
        zip_buffer = create_zip_from_directory(output_dir_abs)
        if zip_buffer:
            st.download_button(
                "Download converted files (ZIP)", zip_buffer,
                file_name="converted_sql.zip", mime="application/zip", key="conv_download",
            )
