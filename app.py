"""
Memory Management Simulator — Paging & Segmentation

Interactive front end for the allocation engine. It lets users:
    - Create, allocate, deallocate and terminate processes
    - Switch between paging and segmentation (drain and reallocate)
    - Pick the page replacement policy (FIFO, LRU, approximated OPTIMAL)
    - Trigger compaction and watch fragmentation change

Built with Streamlit for the web interface and Plotly for visualizations.
All memory logic lives in manager.py / engine.py; this file only renders
what the coordinator reports.
"""

# =============================================================================
# IMPORTS
# =============================================================================

import time

import plotly.graph_objects as go
import streamlit as st

from engine import ReplacementPolicy
from manager import MemoryCoordinator, Strategy
from utils import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_TOTAL_MEMORY,
    MAX_PROCESS_SIZE,
    MIN_PROCESS_SIZE,
    format_address,
    format_memory_size,
    format_percentage,
    get_color,
    get_segment_color,
)


# =============================================================================
# STREAMLIT UI - Web Application Interface
# =============================================================================

st.set_page_config(page_title="Memory Management Simulator", layout="wide")

page = st.sidebar.radio("Choose View", ["Simulator", "Concepts"])

st.title("Memory Management Simulator — Paging & Segmentation")

# =============================================================================
# CONCEPTS PAGE - Educational Content
# =============================================================================

if page == "Concepts":
    st.header("Concepts Behind the Simulator")
    st.markdown(
        """
        ### **1. Paging**
        - Memory is split into fixed-size *pages*; a process of size S needs ceil(S / page size) pages.
        - No external fragmentation; the last page of each process wastes space (*internal* fragmentation).

        ### **2. Page Faults & Replacement**
        When free pages run out, allocated pages are taken from other processes:
        - **FIFO**: the pages admitted earliest.
        - **LRU**: the pages with the oldest access stamp.
        - **OPTIMAL**: approximated by LRU here, since no future reference string is known.

        ### **3. Segmentation**
        - Each process gets three variable-size segments: **CODE**, **DATA**, **STACK**.
        - Placement uses **best fit**: the smallest free hole large enough.
        - Freed holes are merged with free neighbours.

        ### **4. Compaction**
        - Slides every allocated segment to low addresses, leaving one large hole.
        - Runs automatically once when no hole fits a request.

        ### **5. Fragmentation**
        - Paging: share of pages that are free.
        - Segmentation: share of free memory outside the largest hole.
        """
    )
    st.stop()

# -----------------------------------------------------------------------------
# SIDEBAR - Simulation Settings
# -----------------------------------------------------------------------------

st.sidebar.header("Simulation Settings")

page_size = st.sidebar.selectbox(
    "Page size (KB)",
    options=[16, 32, 64, 128, 256],
    index=[16, 32, 64, 128, 256].index(DEFAULT_PAGE_SIZE),
)

# Memory must hold at least one page
total_memory = st.sidebar.number_input(
    "Total memory (KB)",
    min_value=page_size,
    max_value=65536,
    value=max(DEFAULT_TOTAL_MEMORY, page_size),
    step=page_size,
)

strategy = st.sidebar.selectbox("Strategy", options=list(Strategy.ALL))
policy = st.sidebar.selectbox("Replacement Policy", options=list(ReplacementPolicy.ALL))

# -----------------------------------------------------------------------------
# SESSION STATE - Coordinator Persistence
# -----------------------------------------------------------------------------

current = st.session_state.get('coordinator')

# First run, or memory configuration changed: start over with a new coordinator
if current is None or current.total_memory != total_memory or current.page_size != page_size:
    try:
        st.session_state.coordinator = MemoryCoordinator(int(total_memory), page_size)
    except ValueError as e:
        st.sidebar.error(str(e))
        st.stop()

coordinator: MemoryCoordinator = st.session_state.coordinator
coordinator.set_policy(policy)
if coordinator.strategy != strategy:
    coordinator.set_strategy(strategy)

if st.sidebar.button("Reset Simulation"):
    coordinator.reset()
    st.sidebar.success("Simulation reset")

st.sidebar.markdown("---")

# -----------------------------------------------------------------------------
# SIDEBAR - Process Creation
# -----------------------------------------------------------------------------

st.sidebar.header("New Process")

proc_name = st.sidebar.text_input("Name", value="Process")
proc_size = st.sidebar.number_input(
    "Size (KB)", min_value=MIN_PROCESS_SIZE, max_value=MAX_PROCESS_SIZE, value=128
)
proc_priority = st.sidebar.slider("Priority", min_value=1, max_value=10, value=5)

if st.sidebar.button("Create & Allocate"):
    process = coordinator.create_process(proc_name, int(proc_size), proc_priority)
    if coordinator.allocate(process):
        st.sidebar.success(f"P{process.pid} allocated")
    else:
        st.sidebar.error(f"P{process.pid} does not fit (left inactive)")

if st.sidebar.button("Add Random Process"):
    process = coordinator.spawn_random()
    st.sidebar.info(f"P{process.pid} {process.name} ({format_memory_size(process.size)})")

stress_count = st.sidebar.number_input("Stress test: processes", min_value=1, max_value=50, value=10)

if st.sidebar.button("Run Stress Test"):
    # Each spawn is atomic on its own
    for _ in range(int(stress_count)):
        coordinator.spawn_random()
    st.sidebar.success(f"Added {int(stress_count)} processes")

st.sidebar.markdown("---")

# =============================================================================
# MAIN CONTENT AREA - Two Column Layout
# =============================================================================

col1, col2 = st.columns([1, 2])

# -----------------------------------------------------------------------------
# LEFT COLUMN - Controls and Event Log
# -----------------------------------------------------------------------------

with col1:
    st.subheader("Processes")

    processes = coordinator.all_processes()
    if len(processes) == 0:
        st.write("No processes yet")
    else:
        rows = []
        for p in processes:
            rows.append({
                "pid": p.pid,
                "name": p.name,
                "size": format_memory_size(p.size),
                "priority": p.priority,
                "active": p.active,
                "pages": len(p.pages),
                "segments": len(p.segments),
            })
        st.table(rows)

        target_pid = st.selectbox("Process", options=[p.pid for p in processes])
        target = coordinator.find_process(target_pid)

        if st.button("Allocate"):
            if coordinator.allocate(target):
                st.success("Allocated")
            else:
                st.error("Allocation failed")
        if st.button("Deallocate"):
            coordinator.deallocate(target)
            st.info(f"P{target_pid} deallocated")
        if st.button("Terminate"):
            coordinator.terminate_process(target_pid)
            st.info(f"P{target_pid} terminated")

    if coordinator.strategy == Strategy.SEGMENTATION and st.button("Compact Memory"):
        start = time.time()
        coordinator.compact()
        st.success(f"Compacted in {(time.time() - start) * 1000:.1f} ms")

    if coordinator.strategy == Strategy.PAGING:
        access = st.number_input("Access page", min_value=0, value=0)
        if st.button("Touch Page"):
            coordinator.access_page(int(access))

    st.subheader("Event Log")
    for ev in coordinator.recent_events(20):
        st.write(ev)

# -----------------------------------------------------------------------------
# RIGHT COLUMN - Visualizations
# -----------------------------------------------------------------------------

with col2:
    stats = coordinator.get_stats()

    st.subheader("Statistics")
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Used", format_memory_size(stats.used_memory))
    m2.metric("Utilization", format_percentage(stats.utilization))
    m3.metric("Fragmentation", format_percentage(stats.fragmentation))
    m4.metric("Active / Total", f"{stats.active_processes} / {stats.total_processes}")

    fig = go.Figure()

    if coordinator.strategy == Strategy.PAGING:
        st.subheader("Page Table")
        table = coordinator.page_table()
        text = [f"Pg{i}: " + (f"P{pid}" if pid is not None else "Free") for i, pid in enumerate(table)]
        fig.add_trace(go.Bar(
            x=list(range(len(table))),
            y=[1] * len(table),
            text=text,
            marker_color=[get_color(pid is not None, pid) for pid in table],
            hovertext=text,
            hoverinfo='text',
        ))
        fig.update_layout(height=150, showlegend=False, yaxis=dict(showticklabels=False))
        st.plotly_chart(fig, use_container_width=True)

        st.write(f"Free pages: {coordinator.free_pages()} / {coordinator.paging.total_pages}")
        st.subheader("Replacement Queue (FIFO order)")
        st.write(coordinator.fifo_order())
    else:
        st.subheader("Segment Map")
        segments = coordinator.segments()
        # One horizontal stacked bar, each segment proportional to its size
        for s in segments:
            label = f"{s.kind} P{s.owner}" if s.allocated else "FREE"
            fig.add_trace(go.Bar(
                x=[s.size],
                y=["memory"],
                orientation='h',
                marker_color=get_segment_color(s.kind),
                text=label,
                hovertext=f"{label} @ {format_address(s.start)} ({s.size} KB)",
                hoverinfo='text',
            ))
        fig.update_layout(barmode='stack', height=150, showlegend=False, yaxis=dict(showticklabels=False))
        st.plotly_chart(fig, use_container_width=True)

        st.table([{
            "start": format_address(s.start),
            "size": s.size,
            "allocated": s.allocated,
            "owner": s.owner,
            "kind": s.kind,
        } for s in segments])
