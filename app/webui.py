"""Streamlit page: ask a question, see the answer as a table or a bar chart.

``streamlit run app/webui.py`` puts ``app/`` on ``sys.path``, not the repo
root, so install the package first (``pip install -e .``). The API has to be
up as well (``python -m app.main serve``).
"""
from __future__ import annotations

import logging

import streamlit as st

from app.chart_renderer import build_bar_figure
from app.config import configure_logging, load_settings
from app.query_client import QueryClientError, post_query
from app.result_view import ViewState, chart_series, parse_result, placeholder_for, select_view, table_rows

logger = logging.getLogger(__name__)

TAB_LABELS = {"table": "Table View", "chart": "Chart View"}


def _init_state() -> None:
    st.session_state.setdefault("active_tab", "table")
    st.session_state.setdefault("raw_output", "")
    st.session_state.setdefault("request_error", "")


def _run_query(api_url: str, prompt: str, active_tab: str, timeout: int) -> None:
    if not prompt.strip():
        return

    st.session_state.raw_output = ""
    st.session_state.request_error = ""
    with st.spinner("Loading..."):
        try:
            response = post_query(api_url, prompt, active_tab, timeout=timeout)
        except QueryClientError as exc:
            logger.error("Error: %s", exc)
            st.session_state.request_error = str(exc)
            return
    st.session_state.raw_output = response.text
    if parse_result(response.text) is None:
        logger.error("Failed to parse response as JSON (HTTP %s)", response.status_code)


def _render_table(view: ViewState) -> None:
    columns = view.result.columns or []
    rows = table_rows(view.result)
    st.dataframe(
        {column: [row[idx] for row in rows] for idx, column in enumerate(columns)},
        hide_index=True,
        width="stretch",
    )


def _render_chart(view: ViewState) -> None:
    import matplotlib.pyplot as plt

    fig = build_bar_figure(chart_series(view.result))
    try:
        st.pyplot(fig, width="content")
    finally:
        plt.close(fig)


def _render(view: ViewState) -> None:
    if view.kind == "unparsable":
        st.error(view.message)
        st.code(view.raw_output, language=None)
    elif view.kind == "error":
        st.error(view.message)
    elif view.kind == "no_data":
        st.info(view.message)
    elif view.kind == "table":
        _render_table(view)
    elif view.kind == "chart":
        _render_chart(view)


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    st.set_page_config(page_title="AI Database Query", layout="wide")
    _init_state()

    st.title("AI Database Query")
    label = st.radio(
        "View",
        list(TAB_LABELS.values()),
        index=list(TAB_LABELS).index(st.session_state.active_tab),
        horizontal=True,
        label_visibility="collapsed",
    )
    active_tab = next(key for key, value in TAB_LABELS.items() if value == label)
    st.session_state.active_tab = active_tab

    # a form submits on Enter as well as on the button
    with st.form("query_form"):
        prompt = st.text_input("Question", placeholder=placeholder_for(active_tab), label_visibility="collapsed")
        submitted = st.form_submit_button("Query")

    if submitted:
        _run_query(settings.api_url, prompt, active_tab, settings.request_timeout)

    if st.session_state.request_error:
        st.error(st.session_state.request_error)
        return

    raw_output = st.session_state.raw_output
    result = parse_result(raw_output) if raw_output else None
    _render(select_view(result, raw_output, active_tab))


if __name__ == "__main__":
    main()
