"""
Data records for the family chart engine.

Member is the person record as the REST API delivers it; FamilyUnit, Edge and
PositionedUnit are synthetic records produced by the engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

# --- СТОРОНИ ПРИВ'ЯЗКИ (для рендерера) ---
POSITION_TOP = 'top'
POSITION_BOTTOM = 'bottom'
POSITION_LEFT = 'left'
POSITION_RIGHT = 'right'


class Gender(str, Enum):
    MALE = 'MALE'
    FEMALE = 'FEMALE'

    @classmethod
    def parse(cls, value) -> 'Gender':
        if isinstance(value, Gender):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.MALE


@dataclass
class Member:
    id: str
    name: str = ''
    gender: Gender = Gender.MALE
    nickname: Optional[str] = None
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    spouses: Tuple[str, ...] = ()
    children: Tuple[str, ...] = ()
    parents: Tuple[str, ...] = ()
    avatar: Optional[str] = None
    bio: Optional[str] = None
    generation: Optional[int] = None


@dataclass
class FamilyUnit:
    """A person plus the co-parents grouped with them into one visual card."""
    unit_id: str
    primary: Member
    partners: List[Member] = field(default_factory=list)
    children: List[str] = field(default_factory=list)  # member ids
    child_unit_ids: List[str] = field(default_factory=list)
    label: str = ''

    @property
    def partner_count(self) -> int:
        return len(self.partners)

    @property
    def members(self) -> List[Member]:
        return [self.primary] + self.partners


@dataclass
class Edge:
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    stroke: str = '#334155'
    stroke_width: float = 1.5
    edge_type: str = 'smoothstep'
    animated: bool = True


@dataclass
class PositionedUnit:
    unit: FamilyUnit
    x: float
    y: float
    width: float
    height: float
    rank: int = 0
    target_position: str = POSITION_TOP
    source_position: str = POSITION_BOTTOM

    @property
    def unit_id(self) -> str:
        return self.unit.unit_id

    @property
    def primary(self) -> Member:
        return self.unit.primary

    @property
    def partners(self) -> List[Member]:
        return self.unit.partners

    @property
    def child_unit_ids(self) -> List[str]:
        return self.unit.child_unit_ids

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass
class FamilyGraph:
    units: List[FamilyUnit] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    member_to_unit: Dict[str, str] = field(default_factory=dict)

    def unit_by_id(self, unit_id: str) -> Optional[FamilyUnit]:
        for unit in self.units:
            if unit.unit_id == unit_id:
                return unit
        return None

    def unit_for_member(self, member_id) -> Optional[FamilyUnit]:
        unit_id = self.member_to_unit.get(str(member_id))
        if unit_id is None:
            return None
        return self.unit_by_id(unit_id)


# ==================== ПАРСИНГ ====================

def _id_list(raw) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(str(x) for x in raw if x is not None)


def member_from_dict(data: dict) -> Member:
    """Builds a Member from the API record shape (camelCase keys)."""
    if data.get('id') is None:
        raise ValueError(f"Member record without id: {data!r}")

    generation = data.get('generation')
    return Member(
        id=str(data['id']),
        name=data.get('name') or '',
        gender=Gender.parse(data.get('gender')),
        nickname=data.get('nickname') or None,
        birth_date=data.get('birthDate') or None,
        death_date=data.get('deathDate') or None,
        spouses=_id_list(data.get('spouses')),
        children=_id_list(data.get('children')),
        parents=_id_list(data.get('parents')),
        avatar=data.get('avatar') or None,
        bio=data.get('bio') or None,
        generation=int(generation) if isinstance(generation, (int, float)) else None,
    )


def member_to_dict(member: Member) -> dict:
    data = {
        'id': member.id,
        'name': member.name,
        'gender': member.gender.value,
        'spouses': list(member.spouses),
        'children': list(member.children),
        'parents': list(member.parents),
    }
    optional = {
        'nickname': member.nickname,
        'birthDate': member.birth_date,
        'deathDate': member.death_date,
        'avatar': member.avatar,
        'bio': member.bio,
        'generation': member.generation,
    }
    data.update({k: v for k, v in optional.items() if v is not None})
    return data


# ==================== ВІДОБРАЖЕННЯ ====================

def leading_year(date_str: Optional[str]) -> Optional[str]:
    # Дати довільні ("1950-03-01", "1950"), беремо лише рік
    if not date_str:
        return None
    year = str(date_str).strip().split('-')[0].strip()
    return year or None


def display_years(member: Member) -> str:
    born = leading_year(member.birth_date) or '?'
    died = leading_year(member.death_date)
    return f"{born} - {died}" if died else born
