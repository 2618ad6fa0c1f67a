from __future__ import annotations
import logging
import time
import streamlit as st
import pandas as pd
from datetime import date
from uuid import uuid4

from calendar_export import timetable_to_ics
from models import AppState, Settings, Subject, TimerUpdate, format_clock
from paths import get_log_level
from pdf_export import timetable_to_pdf
from planner import generate_timetable, remaining_hours, summarize_timetable
from profiles import (
    create_profile,
    delete_profile,
    list_profiles,
    load_profile,
    save_profile,
)
from text_export import timetable_to_text
from timers import ManualTimer, PomodoroSequencer, format_elapsed

logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("study_timetable")

MODES = ["Pomodoro (25/5)", "Plain blocks"]

st.set_page_config(page_title="Study Timetable", page_icon="📚", layout="wide")


def _ensure_session_state() -> list[str]:
    profiles = list_profiles()
    if not profiles:
        create_profile("default")
        profiles = list_profiles()

    if "profile_name" not in st.session_state:
        st.session_state.profile_name = profiles[0]

    if st.session_state.profile_name not in profiles:
        st.session_state.profile_name = profiles[0]

    if "state" not in st.session_state:
        st.session_state.state = load_profile(st.session_state.profile_name)

    if "pomodoro" not in st.session_state:
        st.session_state.pomodoro_text = "00:00"
        st.session_state.pomodoro_kind = None
        st.session_state.pomodoro = PomodoroSequencer(
            on_update=_on_pomodoro_update,
            on_complete=_on_pomodoro_complete,
        )

    if "manual_timer" not in st.session_state:
        st.session_state.manual_text = "00:00:00"
        st.session_state.manual_timer = ManualTimer(
            on_update=_on_manual_update,
            on_complete=_on_manual_complete,
        )

    return profiles


def _switch_profile(name: str) -> None:
    st.session_state.profile_name = name
    st.session_state.state = load_profile(name)


def _queue_toast(message: str) -> None:
    st.session_state.toast_message = message


def _flush_toast() -> None:
    message = st.session_state.pop("toast_message", None)
    if message:
        st.toast(message)


def _on_pomodoro_update(update: TimerUpdate) -> None:
    st.session_state.pomodoro_text = update.text
    st.session_state.pomodoro_kind = update.kind


def _on_pomodoro_complete() -> None:
    _queue_toast("Pomodoro complete! Great job 🌟")


def _on_manual_update(update: TimerUpdate) -> None:
    st.session_state.manual_text = update.text


def _on_manual_complete(elapsed: int) -> None:
    _queue_toast(f"You studied productively for {format_elapsed(elapsed)}")


def _drain_pomodoro_ticks() -> None:
    sequencer: PomodoroSequencer = st.session_state.pomodoro
    if not sequencer.is_running:
        return
    now = time.monotonic()
    last = st.session_state.get("pomodoro_last_tick", now)
    due = int(now - last)
    for _ in range(due):
        if sequencer.tick():
            break
    st.session_state.pomodoro_last_tick = last + due


def render_subjects(state: AppState) -> None:
    st.header("Subjects")

    st.subheader("Add subject")
    with st.form("add_subject_form", clear_on_submit=True):
        col1, col2, col3, col4 = st.columns([2, 1, 1, 1])
        with col1:
            name = st.text_input("Name", placeholder="Math")
        with col2:
            hours = st.number_input(
                "Hours needed", min_value=0.0, max_value=500.0, value=4.0, step=0.5
            )
        with col3:
            urgency = st.selectbox("Urgency (1-5)", [1, 2, 3, 4, 5], index=2)
        with col4:
            completion = st.number_input(
                "Completion %", min_value=0.0, max_value=100.0, value=0.0, step=5.0
            )
        submitted = st.form_submit_button("Add subject", type="primary")
        if submitted:
            if not name.strip():
                st.warning("Name is required.")
            else:
                state.subjects.append(
                    Subject(
                        id=str(uuid4()),
                        name=name.strip(),
                        hours_needed=float(hours),
                        urgency=int(urgency),
                        completion_percent=float(completion),
                    )
                )
                save_profile(current_profile, state)
                st.toast("Subject added.")

    st.divider()
    st.subheader("Subjects manager")
    if not state.subjects:
        st.info("No subjects yet.")
        return

    rows = [
        {
            "Select": False,
            "id": s.id,
            "Name": s.name,
            "Hours needed": s.hours_needed,
            "Urgency": s.urgency,
            "Completion %": s.completion_percent,
            "Remaining (h)": round(remaining_hours(s), 2),
        }
        for s in state.subjects
    ]
    df = pd.DataFrame(rows).set_index("id")
    edited = st.data_editor(
        df,
        hide_index=True,
        use_container_width=True,
        column_config={
            "Select": st.column_config.CheckboxColumn("Select"),
            "Name": st.column_config.TextColumn("Name"),
            "Hours needed": st.column_config.NumberColumn(
                "Hours needed", format="%.1f", min_value=0.0, max_value=500.0, step=0.5
            ),
            "Urgency": st.column_config.SelectboxColumn("Urgency", options=[1, 2, 3, 4, 5]),
            "Completion %": st.column_config.NumberColumn(
                "Completion %", format="%.0f%%", min_value=0.0, max_value=100.0, step=5.0
            ),
            "Remaining (h)": st.column_config.NumberColumn("Remaining (h)", format="%.2f"),
        },
        disabled=["Remaining (h)"],
        key=f"subjects_editor_{current_profile}",
    )

    edited_records = edited.reset_index().to_dict("records")
    selected_ids = [row["id"] for row in edited_records if row.get("Select")]
    selected_names = [row["Name"] for row in edited_records if row.get("Select")]

    col_apply, col_delete = st.columns([1, 1])

    if col_apply.button("Apply changes"):
        id_to_subject = {s.id: s for s in state.subjects}
        updated_subjects = []
        for row in edited_records:
            subject = id_to_subject.get(row["id"])
            if not subject:
                continue
            new_name = str(row.get("Name") or "").strip()
            if not new_name:
                st.warning("Subject name cannot be empty.")
                return
            hours_value = row.get("Hours needed")
            urgency_value = row.get("Urgency")
            completion_value = row.get("Completion %")

            subject.name = new_name
            if hours_value is not None and not pd.isna(hours_value):
                subject.hours_needed = max(0.0, float(hours_value))
            if urgency_value is not None and not pd.isna(urgency_value):
                subject.urgency = min(5, max(1, int(urgency_value)))
            if completion_value is not None and not pd.isna(completion_value):
                subject.completion_percent = min(100.0, max(0.0, float(completion_value)))
            updated_subjects.append(subject)

        state.subjects = updated_subjects
        save_profile(current_profile, state)
        _queue_toast("Subjects updated.")
        st.rerun()

    if col_delete.button("Delete selected"):
        if not selected_ids:
            st.warning("Select at least one subject to delete.")
        else:

            @st.dialog("Delete selected subjects?")
            def _confirm_subject_delete() -> None:
                st.write(", ".join(selected_names))
                if st.button("Delete", type="primary"):
                    state.subjects = [s for s in state.subjects if s.id not in selected_ids]
                    save_profile(current_profile, state)
                    _queue_toast("Subjects deleted.")
                    st.rerun()

            _confirm_subject_delete()


def render_timetable(state: AppState) -> None:
    st.header("Timetable")

    col_hours, col_mode, col_action = st.columns([1, 1, 1])
    with col_hours:
        daily_hours = st.number_input(
            "Daily hours", value=float(state.settings.daily_hours), step=0.5
        )
    with col_mode:
        mode = st.radio(
            "Mode",
            MODES,
            index=0 if state.settings.use_pomodoro_blocks else 1,
            horizontal=True,
        )
    with col_action:
        generate = st.button("Generate timetable", type="primary")

    if generate:
        use_pomodoro = mode == MODES[0]
        if not state.subjects:
            st.info("No subjects to schedule.")
        else:
            entries = generate_timetable(state.subjects, daily_hours, use_pomodoro)
            if not entries:
                st.info("All subjects show no remaining hours.")
            else:
                state.timetable = entries
                state.last_generated_on = date.today()
                state.settings.use_pomodoro_blocks = use_pomodoro
                state.settings.daily_hours = min(16.0, max(0.5, float(daily_hours)))
                save_profile(current_profile, state)
                summary = summarize_timetable(entries)
                st.toast(f"Timetable generated. Total study blocks: {summary['blocks']}")

    if not state.timetable:
        st.info("No timetable generated yet.")
        return

    rows = [
        {
            "Start": format_clock(e.start),
            "End": format_clock(e.end),
            "Activity": e.label,
            "Kind": e.kind.value,
            "Minutes": e.minutes,
        }
        for e in state.timetable
    ]
    st.dataframe(rows, use_container_width=True, hide_index=True)

    summary = summarize_timetable(state.timetable)
    m1, m2, m3 = st.columns(3)
    m1.metric("Study blocks", summary["blocks"])
    m2.metric("Study (m)", summary["study_minutes"])
    m3.metric("Breaks (m)", summary["break_minutes"])

    with st.expander("Minutes by subject", expanded=False):
        st.table([
            {"Subject": name, "Minutes": minutes}
            for name, minutes in summary["per_subject"].items()
        ])

    st.divider()
    st.subheader("Exports")
    day = state.last_generated_on or date.today()
    try:
        text = timetable_to_text(state.timetable, current_profile, day)
        ics_bytes = timetable_to_ics(state.timetable, day)
        pdf_bytes = timetable_to_pdf(state.timetable, state.settings, current_profile, day)
    except Exception as e:
        logger.exception("Timetable export failed")
        st.error(f"Export failed: {e}")
        return

    c1, c2, c3 = st.columns(3)
    c1.download_button(
        "Download TXT",
        data=text,
        file_name=f"{current_profile}_timetable.txt",
        mime="text/plain",
    )
    c2.download_button(
        "Download ICS",
        data=ics_bytes,
        file_name=f"{current_profile}_timetable_{day.isoformat()}.ics",
        mime="text/calendar",
    )
    c3.download_button(
        "Download PDF",
        data=pdf_bytes,
        file_name=f"{current_profile}_timetable_{day.isoformat()}.pdf",
        mime="application/pdf",
    )


def render_pomodoro(state: AppState) -> None:
    st.header("Pomodoro")
    st.caption("Customize your Pomodoro: work / break / rounds")

    sequencer: PomodoroSequencer = st.session_state.pomodoro
    col1, col2, col3 = st.columns(3)
    with col1:
        work = st.number_input(
            "Work (min)", min_value=1, max_value=180,
            value=state.settings.pomodoro_work_minutes, step=1,
        )
    with col2:
        brk = st.number_input(
            "Break (min)", min_value=0, max_value=60,
            value=state.settings.pomodoro_break_minutes, step=1,
        )
    with col3:
        rounds = st.number_input(
            "Rounds", min_value=1, max_value=12,
            value=state.settings.pomodoro_rounds, step=1,
        )

    col_start, col_stop = st.columns(2)
    if col_start.button("Start Pomodoro ▶️", type="primary", disabled=sequencer.is_running):
        if sequencer.start(int(work), int(brk), int(rounds)):
            st.session_state.pomodoro_last_tick = time.monotonic()
    if col_stop.button("Stop", disabled=not sequencer.is_running):
        sequencer.stop()

    kind = st.session_state.pomodoro_kind
    if sequencer.is_running and kind is not None:
        st.caption(f"{kind.value} · segment {sequencer.state.plan_index + 1} of {len(sequencer.plan)}")
    st.markdown(f"# {st.session_state.pomodoro_text}")


def render_manual_timer() -> None:
    st.header("Timer")
    timer: ManualTimer = st.session_state.manual_timer

    col_start, col_stop = st.columns(2)
    if col_start.button("Start ▶️", type="primary", disabled=timer.is_running):
        timer.start()
    if col_stop.button("Stop", disabled=not timer.is_running):
        timer.stop()
        st.rerun()

    st.markdown(f"# {st.session_state.manual_text}")


def render_settings(state: AppState) -> None:
    st.header("Settings")

    daily_hours = st.slider(
        "Default daily hours", 0.5, 16.0, float(state.settings.daily_hours), 0.5
    )
    use_pomodoro = st.toggle(
        "Use Pomodoro blocks by default", value=state.settings.use_pomodoro_blocks
    )
    with st.expander("Pomodoro defaults", expanded=False):
        work = st.slider("Work (min)", 1, 180, state.settings.pomodoro_work_minutes)
        brk = st.slider("Break (min)", 0, 60, state.settings.pomodoro_break_minutes)
        rounds = st.slider("Rounds", 1, 12, state.settings.pomodoro_rounds)

    if st.button("Save settings", type="primary"):
        state.settings = Settings(
            daily_hours=daily_hours,
            use_pomodoro_blocks=use_pomodoro,
            pomodoro_work_minutes=work,
            pomodoro_break_minutes=brk,
            pomodoro_rounds=rounds,
        )
        save_profile(current_profile, state)
        st.toast("Settings saved.")

    if st.button("Reset current profile (keep settings)"):

        @st.dialog("Reset current profile?")
        def _confirm_reset() -> None:
            st.write("This will clear subjects and the timetable. Settings stay.")
            if st.button("Reset profile", type="primary"):
                state.subjects = []
                state.timetable = []
                state.last_generated_on = None
                save_profile(current_profile, state)
                _queue_toast("Profile reset.")
                st.rerun()

        _confirm_reset()


profiles = _ensure_session_state()
state: AppState = st.session_state.state
current_profile = st.session_state.profile_name

_drain_pomodoro_ticks()
st.session_state.manual_timer.tick()

st.title("Study Timetable")
st.caption("Urgency-weighted daily timetables with Pomodoro and study timers.")
_flush_toast()

if "nav_page" not in st.session_state:
    st.session_state.nav_page = "Subjects"

with st.sidebar:
    st.header("Profile")
    profiles = list_profiles()
    selected_profile = st.selectbox(
        "Active profile",
        options=profiles,
        index=profiles.index(current_profile) if current_profile in profiles else 0,
    )
    if selected_profile != current_profile:
        _switch_profile(selected_profile)
        st.rerun()

    with st.form("create_profile_form"):
        new_profile_name = st.text_input("New profile name", placeholder="e.g. Semester A")
        if st.form_submit_button("Create profile"):
            try:
                new_state = create_profile(new_profile_name)
            except ValueError as e:
                st.error(str(e))
            else:
                _queue_toast(f"Profile '{new_profile_name.strip()}' created.")
                st.session_state.profile_name = new_profile_name.strip()
                st.session_state.state = new_state
                st.rerun()

    if st.button("Delete profile", disabled=len(profiles) <= 1):

        @st.dialog("Delete profile?")
        def _confirm_delete_profile() -> None:
            st.write(f"Delete profile '{current_profile}' and its data?")
            if st.button("Delete", type="primary"):
                delete_profile(current_profile)
                remaining = list_profiles()
                _switch_profile(remaining[0])
                _queue_toast("Profile deleted.")
                st.rerun()

        _confirm_delete_profile()

    st.divider()
    st.header("Navigate")
    pages = ["Subjects", "Timetable", "Pomodoro", "Timer", "Settings"]
    page = st.radio("Page", pages, key="nav_page", label_visibility="collapsed")

    pomodoro: PomodoroSequencer = st.session_state.pomodoro
    if pomodoro.is_running:
        st.caption(f"🍅 {st.session_state.pomodoro_text}")
    if st.session_state.manual_timer.is_running:
        st.caption(f"⏱️ {st.session_state.manual_text}")

if page == "Subjects":
    render_subjects(state)
elif page == "Timetable":
    render_timetable(state)
elif page == "Pomodoro":
    render_pomodoro(state)
elif page == "Timer":
    render_manual_timer()
elif page == "Settings":
    render_settings(state)

if st.session_state.pomodoro.is_running or st.session_state.manual_timer.is_running:
    time.sleep(1)
    st.rerun()
