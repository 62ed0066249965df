"""
Streamlit UI for the Encounter Pricing tool.

Features:
- Encounter builder: add codes, pick up to three modifiers per code
- Modifier 2 appears once modifier 1 is set, modifier 3 once modifier 2 is set
- LMTS modifiers are never offered
- Per-line pricing breakdown, encounter total and CSV export
"""
from datetime import date

import streamlit as st

from encounter_pricing.config.logging_config import configure_logging
from encounter_pricing.config.settings import get_settings
from encounter_pricing.data.catalog import load_catalog
from encounter_pricing.engine import Encounter, build_calculator, is_slot_enabled, offered_modifiers
from encounter_pricing.engine.selection import MAX_MODIFIER_SLOTS, SelectionError


st.set_page_config(
    page_title="Encounter Pricing",
    layout="wide",
)

NONE_OPTION = None


@st.cache_resource
def get_catalog():
    """Get cached catalog snapshot."""
    return load_catalog()


@st.cache_resource
def get_calculator():
    """Get cached price calculator."""
    return build_calculator()


try:
    settings = get_settings()
    configure_logging(settings.log_level)
    catalog = get_catalog()
    calculator = get_calculator()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()


# Encounter state is per browser session
if 'encounter' not in st.session_state:
    st.session_state.encounter = Encounter(calculator)
encounter: Encounter = st.session_state.encounter


def _on_modifier_change(line_index: int, slot_index: int, widget_key: str):
    modifier_id = st.session_state[widget_key]
    try:
        if modifier_id is NONE_OPTION:
            encounter.clear_modifier(line_index, slot_index)
        else:
            encounter.set_modifier(line_index, slot_index, modifier_id, as_of=date.today())
    except SelectionError as e:
        st.session_state.selection_error = str(e)
        st.session_state.pop(widget_key, None)
    # Later slot widgets hold stale choices once an earlier slot changes
    for later in range(slot_index + 1, MAX_MODIFIER_SLOTS):
        st.session_state.pop(f"mod_{line_index}_{later}", None)


def _remove_line(line_index: int):
    encounter.remove_line(line_index)
    for key in [k for k in st.session_state.keys() if str(k).startswith("mod_")]:
        del st.session_state[key]


st.title("Encounter Pricing")
st.caption(
    "When a physician treats a patient, we call that an encounter. Each procedure performed is a code, "
    "and each code can have up to 3 modifiers that adjust its base price."
)

# ============================================================================
# ADD CODE
# ============================================================================
with st.container(border=True):
    st.markdown("##### ➕ Add Code to Encounter")
    codes = catalog.active_codes(date.today()) or catalog.codes
    if not codes:
        st.info("The code catalog is empty.")
    else:
        c1, c2 = st.columns([4, 1])
        with c1:
            chosen = st.selectbox(
                "Select Code",
                options=codes,
                format_func=lambda code: code.label,
                label_visibility="collapsed",
            )
        with c2:
            if st.button("Add to Encounter", type="primary", use_container_width=True):
                encounter.add_code(chosen)
                st.rerun()

if 'selection_error' in st.session_state:
    st.error(st.session_state.pop('selection_error'))

# ============================================================================
# ENCOUNTER LINES
# ============================================================================
st.subheader("Selected Codes")

if not encounter.lines:
    st.info("No codes selected yet.")

for line_index, line in enumerate(encounter.lines):
    with st.container(border=True):
        head, remove = st.columns([5, 1])
        head.markdown(f"**{line.code.code}** - {line.code.description}")
        remove.button(
            "🗑️ Remove",
            key=f"remove_{line_index}",
            on_click=_remove_line,
            args=(line_index,),
            use_container_width=True,
        )

        labels = {m.id: f"{m.modifier_code} ({m.modifier_type} {m.amount})" for m in line.code.modifiers}

        slot_columns = st.columns(MAX_MODIFIER_SLOTS)
        for slot_index, column in enumerate(slot_columns):
            if not is_slot_enabled(line, slot_index):
                continue
            widget_key = f"mod_{line_index}_{slot_index}"
            options = [NONE_OPTION] + [m.id for m in offered_modifiers(line, slot_index, as_of=date.today())]
            current = line.modifier_at(slot_index)
            with column:
                st.selectbox(
                    f"Modifier {slot_index + 1}",
                    options=options,
                    index=options.index(current.id) if current and current.id in options else 0,
                    format_func=lambda mid: "None" if mid is NONE_OPTION else labels.get(mid, str(mid)),
                    key=widget_key,
                    on_change=_on_modifier_change,
                    args=(line_index, slot_index, widget_key),
                )

        breakdown = encounter.breakdown(line_index)
        for warning in breakdown.warnings:
            st.warning(warning)
        with st.expander("Pricing breakdown"):
            st.code(breakdown.get_trace_text(), language=None)
        st.markdown(f"<p style='text-align: right'>Price: <b>${line.price:,.2f}</b></p>", unsafe_allow_html=True)

# ============================================================================
# TOTAL
# ============================================================================
st.divider()
m1, m2 = st.columns(2)
m1.metric("Total Price", f"${encounter.total:,.2f}")
m2.metric("Codes", len(encounter))

if encounter.lines:
    st.download_button(
        "📥 CSV",
        data=encounter.to_frame().to_csv(index=False),
        file_name="encounter.csv",
        mime="text/csv",
    )
