"""
Рендерер SVG для веб-версії сімейного дерева.
Перетворює розміщені одиниці та ребра FamilyChart у SVG рядок
з ортогональними (ступінчастими) лініями.
"""

from html import escape
from typing import Iterable, Optional

from chart_state import FamilyChart
from family_model import POSITION_RIGHT, Edge, PositionedUnit, display_years
from graph_builder import handle_id

MARGIN = 40
TOGGLE_RADIUS = 14
TOGGLE_PREFIX = 'toggle:'
MEMBER_PREFIX = 'member:'

# Стилі для SVG
STYLE = """
<style>
    .card-rect { cursor: pointer; transition: all 0.2s; }
    .card-rect:hover { stroke-width: 3; filter: drop-shadow(0px 0px 5px rgba(37, 99, 235, 0.4)); }
    .name-text { pointer-events: none; font-family: sans-serif; font-size: 22px; font-weight: bold; }
    .sub-text { pointer-events: none; font-family: sans-serif; font-size: 16px; fill: #64748b; }
    .toggle { cursor: pointer; }
</style>
"""

CARD_FILL = {'MALE': '#e0f2fe', 'FEMALE': '#fce7f3'}
SELECTED_BORDER = '#f59e0b'


class SVGRenderer:
    def __init__(self, chart: FamilyChart, collapsed_ids: Iterable[str] = (),
                 selected_member_id: Optional[str] = None):
        self.chart = chart
        self.collapsed_ids = set(collapsed_ids)
        self.selected_member_id = selected_member_id
        self.units = {u.unit_id: u for u in chart.units}

        # Обчислюємо межі для viewBox
        if chart.units:
            self.min_x = min(u.x for u in chart.units) - MARGIN
            self.min_y = min(u.y for u in chart.units) - MARGIN
            self.width = max(u.x + u.width for u in chart.units) - self.min_x + MARGIN
            self.height = max(u.y + u.height for u in chart.units) - self.min_y + MARGIN
        else:
            self.min_x, self.min_y, self.width, self.height = 0, 0, 800, 600

    def generate_svg(self, zoom_level: float = 1.0) -> str:
        elements = []
        # Лінії під картками
        elements.extend(self._draw_edges())
        elements.extend(self._draw_units())

        final_width = int(self.width * zoom_level)
        final_height = int(self.height * zoom_level)

        return f"""
        <svg viewBox="{self.min_x} {self.min_y} {self.width} {self.height}"
             width="{final_width}px"
             height="{final_height}px"
             preserveAspectRatio="xMidYMid meet"
             xmlns="http://www.w3.org/2000/svg">
            {STYLE}
            {''.join(elements)}
        </svg>
        """

    # ==================== КАРТКИ ====================

    def _draw_units(self) -> list:
        units_svg = []
        for unit in self.chart.units:
            card_width = unit.width / (1 + len(unit.partners))
            for index, member in enumerate([unit.primary] + unit.partners):
                units_svg.append(self._draw_card(member, unit.x + index * card_width, unit.y,
                                                 card_width, unit.height))
            if unit.child_unit_ids:
                units_svg.append(self._draw_toggle(unit))
        return units_svg

    def _draw_card(self, member, x, y, width, height) -> str:
        fill = CARD_FILL.get(member.gender.value, '#f1f5f9')
        selected = member.id == self.selected_member_id
        border = SELECTED_BORDER if selected else '#cbd5e1'
        stroke_w = 4 if selected else 2
        cx = x + width / 2
        cy = y + height / 2

        name = member.name if len(member.name) <= 20 else member.name[:18] + "..."
        lines = [f'<text x="{cx}" y="{cy}" text-anchor="middle" class="name-text">{escape(name)}</text>']
        if member.nickname:
            lines.append(f'<text x="{cx}" y="{cy + 26}" text-anchor="middle" class="sub-text">'
                         f'({escape(member.nickname)})</text>')
        lines.append(f'<text x="{cx}" y="{cy + 52}" text-anchor="middle" class="sub-text">'
                     f'{escape(display_years(member))}</text>')

        # id в тезі <a> - це те, що поверне click_detector
        return f"""
            <a href='#' id='{MEMBER_PREFIX}{escape(member.id)}'>
                <g>
                    <rect x="{x + 8}" y="{y}" width="{width - 16}" height="{height}"
                          rx="16" ry="16" fill="{fill}" stroke="{border}" stroke-width="{stroke_w}" class="card-rect" />
                    {''.join(lines)}
                </g>
            </a>
            """

    def _draw_toggle(self, unit: PositionedUnit) -> str:
        collapsed = unit.unit_id in self.collapsed_ids
        if unit.source_position == POSITION_RIGHT:
            cx, cy = unit.x + unit.width, unit.y + unit.height / 2
        else:
            cx, cy = unit.x + unit.width / 2, unit.y + unit.height
        symbol = '+' if collapsed else '−'
        fill = '#2563eb' if collapsed else '#ffffff'
        text_fill = '#ffffff' if collapsed else '#64748b'
        return f"""
            <a href='#' id='{TOGGLE_PREFIX}{escape(unit.unit_id)}'>
                <g class="toggle">
                    <circle cx="{cx}" cy="{cy}" r="{TOGGLE_RADIUS}" fill="{fill}" stroke="#94a3b8" stroke-width="2" />
                    <text x="{cx}" y="{cy + 6}" text-anchor="middle" fill="{text_fill}" class="sub-text">{symbol}</text>
                </g>
            </a>
            """

    # ==================== ЛІНІЇ ====================

    def _source_point(self, unit: PositionedUnit, edge: Edge):
        if unit.source_position == POSITION_RIGHT:
            return unit.x + unit.width, unit.y + unit.height / 2

        x = unit.x + unit.width / 2
        if edge.source_handle:
            card_width = unit.width / (1 + len(unit.partners))
            for index, member in enumerate([unit.primary] + unit.partners):
                if handle_id(member.id) == edge.source_handle:
                    x = unit.x + (index + 0.5) * card_width
                    break
        return x, unit.y + unit.height

    def _draw_edges(self) -> list:
        edges_svg = []
        for edge in self.chart.edges:
            source = self.units.get(edge.source)
            target = self.units.get(edge.target)
            if source is None or target is None:
                continue

            sx, sy = self._source_point(source, edge)
            if source.source_position == POSITION_RIGHT:
                tx, ty = target.x, target.y + target.height / 2
                mid_x = sx + (tx - sx) * 0.5
                points = [(sx, sy), (mid_x, sy), (mid_x, ty), (tx, ty)]
            else:
                tx, ty = target.x + target.width / 2, target.y
                # Горизонтальна гілка посередині між поколіннями
                branch_y = sy + (ty - sy) * 0.5
                points = [(sx, sy), (sx, branch_y), (tx, branch_y), (tx, ty)]

            edges_svg.append(self._polyline(points, edge.stroke, edge.stroke_width))
        return edges_svg

    def _polyline(self, points, color, width):
        coords = ' '.join(f"{x},{y}" for x, y in points)
        return f'<polyline points="{coords}" fill="none" stroke="{color}" stroke-width="{width}" />'
