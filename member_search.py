"""Пошук людей за ім'ям або прізвиськом."""

from typing import Iterable, List

from family_model import Member

SEARCH_LIMIT = 10


def search_members(members: Iterable[Member], query: str, limit: int = SEARCH_LIMIT) -> List[Member]:
    query = (query or '').strip().lower()
    if not query:
        return []

    found = []
    for member in members:
        if query in (member.name or '').lower() or query in (member.nickname or '').lower():
            found.append(member)
            if len(found) >= limit:
                break
    return found
