import sys, os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import io
import time

import pandas as pd
import streamlit as st

from facultime.io_utils import load_lectures, load_preferences, load_faculty, generate_synthetic
from facultime.channel import StartRequest
from facultime.exceptions import FaculTimeError
from facultime.models import Schedule
from facultime.algorithms.greedy import greedy_assignment
from facultime.algorithms.branch_bound import SearchParams
from facultime.scheduling.evaluation import summary
from facultime.worker import SearchWorker

# ---------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------
st.set_page_config(page_title="FaculTime – Lecture Slot Optimizer", layout="wide")
st.title("FaculTime – Preference-Aware Lecture Slot Optimizer")

# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _bytes_of(upload):
    if upload is None:
        return None
    return upload.getvalue()


def schedule_frame(sched: Schedule) -> pd.DataFrame:
    return pd.DataFrame(
        [{"faculty": f, "lecture_id": a.lecture.id, "time_slot": a.lecture.time_slot,
          "preferred": a.is_preferred} for f, a in sched.pairs()],
        columns=["faculty", "lecture_id", "time_slot", "preferred"],
    )

# ---------------------------------------------------------------------
# Caching
# ---------------------------------------------------------------------
@st.cache_data
def load_inputs_cached(lectures_bytes: bytes, prefs_bytes: bytes, faculty_bytes: bytes):
    lectures = load_lectures(io.BytesIO(lectures_bytes))
    preferences = load_preferences(io.BytesIO(prefs_bytes))
    if faculty_bytes is not None:
        faculty = load_faculty(io.StringIO(faculty_bytes.decode("utf-8")))
    else:
        faculty = list(preferences.keys())
    return faculty, lectures, preferences


@st.cache_data
def build_synthetic_cached(n: int, slots: int, per_slot: int, prob: float, seed: int = 42):
    return generate_synthetic(n, n_time_slots=slots, lectures_per_slot=per_slot, pref_prob=prob, seed=seed)

# ---------------------------------------------------------------------
# UI
# ---------------------------------------------------------------------
st.subheader("Inputs")
mode = st.radio("Input mode", ["CSV upload", "Synthetic"], horizontal=True)

with st.form("controls"):
    if mode == "CSV upload":
        c1, c2, c3 = st.columns(3)
        lectures_file = c1.file_uploader("Lectures CSV (id,time_slot)", type=["csv"])
        prefs_file = c2.file_uploader("Preferences CSV (faculty,time_slot)", type=["csv"])
        faculty_file = c3.file_uploader("(Optional) Faculty list, one per line", type=["txt"])
        n = slots = per_slot = prob = None
    else:
        c1, c2, c3, c4 = st.columns(4)
        n = c1.number_input("Faculty (N)", 1, 200, 10)
        slots = c2.number_input("Time slots", 1, 100, 6)
        per_slot = c3.number_input("Lectures per time slot", 1, 50, 2)
        prob = c4.slider("Preference probability", 0.0, 1.0, 0.3)
        lectures_file = prefs_file = faculty_file = None

    with st.expander("Search settings", expanded=False):
        colA, colB, colC = st.columns(3)
        shuffle = colA.checkbox("Shuffle faculty order", value=False)
        seed = colA.number_input("Seed", 0, 1_000_000, 42)
        report_interval = colB.number_input("Nodes between progress reports", 100, 1_000_000, 1000, 100)
        use_bound = colB.checkbox("Override initial bound", value=False)
        bound = colB.number_input("Initial bound", 0, 10_000, 0)
        time_limit = colC.number_input("Time limit (sec, 0 = none)", 0.0, 3600.0, 60.0, 1.0)

    submitted = st.form_submit_button("Run Optimizer")

cancel_clicked = st.button("Cancel search")

# ---------------------------------------------------------------------
# Start on Submit
# ---------------------------------------------------------------------
if submitted:
    if mode == "CSV upload":
        if lectures_file is None or prefs_file is None:
            st.error("Please upload lectures and preferences CSVs.")
            st.stop()
        try:
            faculty, lectures, preferences = load_inputs_cached(
                _bytes_of(lectures_file), _bytes_of(prefs_file), _bytes_of(faculty_file))
        except FaculTimeError as e:
            st.error(f"Invalid input: {e.message}")
            st.stop()
    else:
        faculty, lectures, preferences = build_synthetic_cached(int(n), int(slots), int(per_slot), float(prob), int(seed))

    request = StartRequest(faculty=faculty, lectures=lectures, preferences=preferences)
    fallback = None
    if use_bound:
        request.initial_best_score = int(bound)
    else:
        try:
            fallback = greedy_assignment(faculty, lectures, preferences)
            request.initial_best_score = fallback.score
        except FaculTimeError as e:
            st.warning(f"Greedy heuristic failed ({e.message}); searching without a bound.")

    old = st.session_state.get("worker")
    if old is not None and not old.done:
        old.cancel()
    params = SearchParams(report_interval=int(report_interval), shuffle=shuffle, seed=int(seed))
    st.session_state.worker = SearchWorker(request, params=params).start()
    st.session_state.fallback = fallback
    st.session_state.started = time.perf_counter()
    st.session_state.deadline = (time.perf_counter() + time_limit) if time_limit else None
    st.session_state.progress = None

worker = st.session_state.get("worker")
if worker is not None and cancel_clicked and not worker.done:
    worker.cancel()

# ---------------------------------------------------------------------
# Live progress
# ---------------------------------------------------------------------
if worker is not None:
    st.subheader("Progress")
    m1, m2, m3 = st.columns(3)
    nodes_box, best_box, faculty_box = m1.empty(), m2.empty(), m3.empty()
    status_box = st.empty()

    def render():
        prog = st.session_state.progress
        nodes_box.metric("Nodes explored", prog.nodes_explored if prog else 0)
        best = worker.best.score if worker.best else worker.request.initial_best_score
        best_box.metric("Best score", best if best is not None else "–")
        faculty_box.metric("Current faculty", str(prog.faculty_label) if prog else "–")

    while not worker.done:
        deadline = st.session_state.deadline
        if deadline and time.perf_counter() >= deadline and not worker.channel.cancelled:
            worker.cancel()
        msg = worker.poll(timeout=0.2)
        if msg is not None and msg.kind == "progress":
            st.session_state.progress = msg
        render()
        status_box.info("Cancelling ..." if worker.channel.cancelled else "Searching ...")
    render()

    final = worker.final
    if final.kind == "error":
        status_box.error(f"Search failed: {final.message}")
        st.stop()
    status_box.success("Search cancelled." if final.kind == "cancelled" else "Search complete.")

    req = worker.request
    sched = worker.best.schedule if worker.best is not None else st.session_state.fallback
    st.subheader("Summary")
    st.text(summary(req.faculty, req.lectures, req.preferences, sched, final.final_score,
                    final.nodes_explored, cancelled=final.kind == "cancelled"))
    st.caption(f"Total time: {time.perf_counter() - st.session_state.started:.3f}s")

    if sched is not None:
        df = schedule_frame(sched)
        st.dataframe(df, use_container_width=True)
        st.download_button("Download schedule.csv", df.to_csv(index=False), file_name="schedule.csv",
                           mime="text/csv")
