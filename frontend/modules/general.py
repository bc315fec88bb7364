import streamlit as st
from utils import list_conversion_configs_api, latest_run_api, check_guide_api

__all__ = ["display_home_page", "display_guide_check_page"]


def display_home_page():
    st.title("Welcome to DorisLift!")
    st.markdown(
        """
        DorisLift converts SparkSQL workloads to Apache Doris SQL. It uses the
        sqlglot parser and generator for dialect translation and adds
        rule-based rewrites for what sqlglot leaves as-is.

        **Key Features:**

        *   **Transpile SQL:** Convert a query (or a list of queries) interactively.
        *   **Convert Directory:** Convert a tree of `.sql` scripts, with a summary, a CSV report and a manual review log.
        *   **Check Migration Guide:** Make sure every SparkSQL example in a Markdown guide has its Doris SQL counterpart.

        Use the sidebar to navigate through the different modules of the application.
        """
    )

    configs = list_conversion_configs_api()
    if configs.get("pairs"):
        st.subheader("Available rule sets")
        for pair, files in configs["pairs"].items():
            st.markdown(f"**{pair}**: " + ", ".join(f"`{f}`" for f in files))

    latest = latest_run_api()
    if latest.get("summary"):
        stats = latest["summary"].get("overall_statistics", {})
        st.subheader("Latest conversion run")
        st.caption(latest.get("run_directory", ""))
        cols = st.columns(4)
        cols[0].metric("Files", stats.get("total_files", 0))
        cols[1].metric("Statements converted", stats.get("statements_converted", 0))
        cols[2].metric("Statements with errors", stats.get("statements_with_errors", 0))
        cols[3].metric("Statements skipped", stats.get("statements_skipped", 0))


def display_guide_check_page():
    st.header("Check Migration Guide")
    st.markdown(
        "Every **SparkSQL** code block should be followed by its **Doris SQL** counterpart. "
        "With verification enabled each SparkSQL block is transpiled and compared with the Doris block."
    )

    source_choice = st.radio("Guide source", ("Upload Markdown", "Server path"), horizontal=True, key="guide_source")
    markdown = None
    path = None
    if source_choice == "Upload Markdown":
        uploaded = st.file_uploader("Markdown guide", type=["md", "markdown", "txt"], key="guide_upload")
        if uploaded is not None:
            markdown = uploaded.getvalue().decode("utf-8")
    else:
        path = st.text_input("Path to guide on the API server", key="guide_path")

    verify = st.checkbox("Verify examples with the transpiler", value=False, key="guide_verify")

    if st.button("Check Guide", key="guide_check_button", type="primary"):
        if markdown is None and not path:
            st.warning("Upload a guide or enter a path first.")
        else:
            with st.spinner("Checking guide…"):
                st.session_state.guide_result = check_guide_api(markdown=markdown, path=path, verify=verify)

    result = st.session_state.get("guide_result")
    if not result:
        return
    if result.get("error"):
        st.error(f"Error: {result['error']}")
        return

    stats = result.get("stats", {})
    if result.get("status") == "pass":
        st.success(f"Guide check passed: {stats.get('pairs', 0)} paired example(s).")
    else:
        st.error("Guide check failed.")
    st.json(stats)

    for item in result.get("unmatched", []):
        st.warning(f"Unmatched {item['kind']} block at line {item['line']} ({item.get('label') or 'no label'})")

    for pair in result.get("pairs", []):
        if pair.get("match") is False:
            with st.expander(f"Mismatch at line {pair['source']['line']}"):
                if pair.get("error"):
                    st.error(pair["error"])
                st.code(pair["source"]["code"], language="sql")
                st.markdown("**Expected (guide):**")
                st.code(pair["target"]["code"], language="sql")
                if pair.get("converted_sql"):
                    st.markdown("**Transpiled:**")
                    st.code(pair["converted_sql"], language="sql")
