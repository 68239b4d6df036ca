"""
Family Chart Viewer - Web Application.
Візуалізація: Custom SVG Renderer (Orthogonal), згортання гілок кліком.
Дані: JSON список людей (як його віддає REST API).
"""

import os

import streamlit as st
from st_click_detector import click_detector

# Імпорт локальних модулів
from chart_state import ChartState
from data_loader import create_test_data, load_members, loads_members
from family_model import display_years
from layout_engine import DIRECTION_LR, DIRECTION_TB
from member_search import search_members
from svg_renderer import MEMBER_PREFIX, TOGGLE_PREFIX, SVGRenderer
from utils.logger_service import LoggerService

DATA_FILE = os.environ.get("FAMILY_CHART_DATA", "")

# --- КОНФІГУРАЦІЯ СТОРІНКИ ---
st.set_page_config(
    page_title="Сімейне Дерево",
    page_icon="🌳",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_logger_service():
    return LoggerService()


def initial_members():
    if DATA_FILE and os.path.exists(DATA_FILE):
        try:
            return load_members(DATA_FILE)
        except (OSError, ValueError) as e:
            st.error(f"Не вдалося прочитати {DATA_FILE}: {e}")
    return create_test_data()


def get_chart_state() -> ChartState:
    if 'chart_state' not in st.session_state:
        st.session_state.chart_state = ChartState(initial_members())
    if 'click_round' not in st.session_state:
        st.session_state.click_round = 0
    return st.session_state.chart_state


def next_click_round():
    # Новий ключ скидає останній клік у click_detector
    st.session_state.click_round += 1


def pick_member(state: ChartState, member_id: str):
    # Без нового ключа click_detector поверне попередній клік і перепише вибір
    state.select_member(member_id)
    next_click_round()


# --- 1. БІЧНА ПАНЕЛЬ ---
def render_sidebar(state: ChartState):
    logger = get_logger_service()
    st.sidebar.title("🌳 Сімейне дерево")

    uploaded_file = st.sidebar.file_uploader("Завантажити JSON", type=["json"])
    if uploaded_file is not None and st.sidebar.button("Відкрити файл"):
        try:
            state.set_members(loads_members(uploaded_file.getvalue()))
            logger.log("LOAD_MEMBERS", f"{uploaded_file.name}: {len(state.members)} members")
            next_click_round()
            st.rerun()
        except ValueError as e:
            st.sidebar.error(f"Помилка файлу: {e}")

    if st.sidebar.button("🛠 Тестові дані"):
        state.set_members(create_test_data())
        logger.log("LOAD_MEMBERS", "test data")
        next_click_round()
        st.rerun()

    st.sidebar.markdown("---")
    labels = {"Згори вниз": DIRECTION_TB, "Зліва направо": DIRECTION_LR}
    current = next(k for k, v in labels.items() if v == state.direction)
    choice = st.sidebar.radio("Напрямок", list(labels.keys()), index=list(labels).index(current))
    if labels[choice] != state.direction:
        state.direction = labels[choice]
        logger.log("SET_DIRECTION", state.direction)

    if state.collapsed_ids and st.sidebar.button("➕ Розгорнути все"):
        state.expand_all()
        logger.log("TOGGLE_COLLAPSE", "expand all")
        next_click_round()
        st.rerun()

    st.sidebar.markdown("---")
    query = st.sidebar.text_input("🔍 Пошук за ім'ям")
    found = search_members(state.members, query)
    if query and not found:
        st.sidebar.caption("Нікого не знайдено.")
    for member in found:
        label = f"{member.name} ({display_years(member)})"
        if st.sidebar.button(label, key=f"search_{member.id}"):
            pick_member(state, member.id)
            st.rerun()

    with st.sidebar.expander("📜 Історія дій", expanded=False):
        logs = logger.get_recent_logs(10)
        if not logs:
            st.write("Історія порожня.")
        for timestamp, user, action, details in logs:
            st.markdown(f"**{action}** ({user})")
            st.caption(f"{details} | {timestamp}")


# --- 2. ВІЗУАЛІЗАЦІЯ (SVG) ---
def render_chart(state: ChartState):
    if not state.members:
        st.info("Дерево порожнє. Завантажте JSON зі списком людей.")
        return

    chart = state.compute()
    renderer = SVGRenderer(chart, state.collapsed_ids, state.selected_member_id)
    zoom = st.slider("Масштаб", 0.1, 1.0, 0.35, 0.05)

    clicked = click_detector(renderer.generate_svg(zoom), key=f"chart_{st.session_state.click_round}")
    if not clicked:
        return

    if clicked.startswith(TOGGLE_PREFIX):
        unit_id = clicked[len(TOGGLE_PREFIX):]
        collapsed = state.toggle_collapse(unit_id)
        get_logger_service().log("TOGGLE_COLLAPSE", f"{unit_id}: {'collapsed' if collapsed else 'expanded'}")
        next_click_round()
        st.rerun()
    elif clicked.startswith(MEMBER_PREFIX):
        member_id = clicked[len(MEMBER_PREFIX):]
        if member_id != state.selected_member_id:
            state.select_member(member_id)
            st.rerun()


def render_member_panel(state: ChartState):
    member = next((m for m in state.members if m.id == state.selected_member_id), None)
    if member is None:
        st.info("👈 Клікніть на людину в дереві або знайдіть її в пошуку.")
        return

    by_id = {m.id: m for m in state.members}

    def names(ids):
        return ', '.join(by_id[i].name for i in ids if i in by_id) or '—'

    st.markdown(f"### {member.name}" + (f" ({member.nickname})" if member.nickname else ""))
    c1, c2 = st.columns(2)
    with c1:
        st.write(f"**Роки життя:** {display_years(member)}")
        st.write(f"**Батьки:** {names(member.parents)}")
    with c2:
        st.write(f"**Партнери:** {names(member.spouses)}")
        st.write(f"**Діти:** {names(member.children)}")
    if member.bio:
        st.write(member.bio)


# --- 3. ГОЛОВНИЙ ЗАПУСК ---
def main():
    state = get_chart_state()
    render_sidebar(state)
    st.subheader("📊 Генеалогічне Дерево")
    render_chart(state)
    st.markdown("---")
    render_member_panel(state)


if __name__ == "__main__":
    main()
