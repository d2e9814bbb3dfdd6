import logging
import os
import time

import streamlit as st

from sampling_distribution import APP_VERSION, DemoConfig, PopulationKind, Session
from sampling_distribution.config import POPULATIONS
from sampling_distribution.exceptions import DemoError, SdmUnavailableError
from sampling_distribution.presentation import MatplotlibAdapter
from sampling_distribution.session import POPULATION_CANVAS, SDM_CANVAS

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Pause between redraws while a batch of sample means is animated.
BATCH_DELAY_S = 0.15


# ----------------------------
# Session state
# ----------------------------
def get_session() -> Session:
    if "session" not in st.session_state:
        config = DemoConfig()
        st.session_state.session = Session(MatplotlibAdapter(), config)
        st.session_state.messages = []
        st.session_state.population = PopulationKind.NORMAL.value
        st.session_state.sample_size = str(config.default_sample_size)
        st.session_state.repetitions = config.repetition_choices[0]
        st.session_state.show_sdm = True
    return st.session_state.session


def flash(level: str, text: str):
    st.session_state.messages.append((level, text))


def on_population_change():
    session = get_session()
    session.change_population(st.session_state.population)
    if not session.sdm_visible:
        st.session_state.show_sdm = False


def on_sample_size_change():
    session = get_session()
    try:
        session.set_sample_size(st.session_state.sample_size)
    except DemoError as e:
        flash("error", str(e))
        st.session_state.sample_size = str(session.sample_size)


def on_repetitions_change():
    get_session().set_repetitions(st.session_state.repetitions)


def on_sdm_toggle():
    try:
        get_session().set_sdm_visible(st.session_state.show_sdm)
    except SdmUnavailableError as e:
        flash("warning", str(e))
        st.session_state.show_sdm = False


def on_reset():
    get_session().reset_all()


# ----------------------------
# Streamlit UI
# ----------------------------
st.set_page_config(page_title="Sampling Distribution of the Mean", layout="centered")
st.title("Sampling Distribution of the Mean")

session = get_session()
config = session.config

with st.sidebar:
    st.header("Parameters")

    st.selectbox(
        "Population",
        [kind.value for kind in PopulationKind],
        format_func=lambda v: POPULATIONS[PopulationKind(v)].label,
        key="population",
        on_change=on_population_change,
    )
    st.text_input(
        f"Sample size (n, {config.min_sample_size}-{config.max_sample_size})",
        key="sample_size",
        on_change=on_sample_size_change,
    )
    st.radio(
        "Sample means per click",
        list(config.repetition_choices),
        key="repetitions",
        horizontal=True,
        on_change=on_repetitions_change,
    )

    st.divider()
    st.checkbox(
        "Show sampling distribution of the mean",
        key="show_sdm",
        on_change=on_sdm_toggle,
    )

    st.divider()
    st.caption(f"App version: {APP_VERSION}")

col_sample, col_reset = st.columns(2)
sample_clicked = col_sample.button("Sample", disabled=session.locked)
col_reset.button("Reset", on_click=on_reset)

for level, text in st.session_state.messages:
    getattr(st, level)(text)
st.session_state.messages = []

st.subheader("Population")
pop_area = st.empty()
st.subheader("Sample means")
sdm_area = st.empty()
stats_area = st.empty()


def draw():
    pop_area.pyplot(session.adapter.figure(POPULATION_CANVAS), clear_figure=False)
    sdm_area.pyplot(session.adapter.figure(SDM_CANVAS), clear_figure=False)


def stats_markdown(outcome, completed: int) -> str:
    return (
        f"**Last sample**\n\n"
        f"- Sample size: **{session.sample_size}**\n"
        f"- Sample mean: **{outcome.mean:g}**\n"
        f"- Sample SD: **{outcome.sd:g}**\n"
        f"- Sample means drawn this click: **{completed} / {session.repetitions}**\n"
    )


# ----------------------------
# Sampling
# ----------------------------
if sample_clicked:
    try:
        if session.repetitions == 1:
            outcome = session.sample_once(display=True)
            if outcome is not None:
                stats_area.markdown(stats_markdown(outcome, 1))
        else:
            completed = 0
            for chunk in session.iter_sample_many():
                completed += len(chunk)
                draw()
                stats_area.markdown(stats_markdown(chunk[-1], completed))
                time.sleep(BATCH_DELAY_S)
    except DemoError as e:
        st.error(str(e))

draw()

if session.locked:
    st.info("The sample means fill the graph. Press **Reset** to start again.")
