"""
Loading and saving member lists (JSON), plus demo data.
The chart engine itself never touches files; this sits in front of it.
"""

import json
import os
from typing import List

from family_model import Member, member_from_dict, member_to_dict


def parse_members(payload) -> List[Member]:
    """Accepts a bare list of member records or {"members": [...]}."""
    if isinstance(payload, dict) and 'members' in payload:
        payload = payload['members']
    if not isinstance(payload, list):
        raise ValueError("Member payload must be a list or an object with a 'members' list")
    return [member_from_dict(item) for item in payload]


def load_members(file_path: str) -> List[Member]:
    with open(file_path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return parse_members(data)


def loads_members(raw) -> List[Member]:
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8')
    return parse_members(json.loads(raw))


def save_members(members: List[Member], file_path: str):
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump({'members': [member_to_dict(m) for m in members]}, f, ensure_ascii=False, indent=2)


def create_test_data() -> List[Member]:
    """Адам і Єва з трьома синами; у Сета дві дружини."""
    records = [
        {'id': '1', 'name': 'Adam', 'gender': 'MALE', 'birthDate': '1900-01-01',
         'spouses': ['2'], 'children': ['3', '4', '5']},
        {'id': '2', 'name': 'Eve', 'gender': 'FEMALE', 'birthDate': '1902',
         'spouses': ['1'], 'children': ['3', '4', '5']},
        {'id': '3', 'name': 'Cain', 'gender': 'MALE', 'parents': ['1', '2']},
        {'id': '4', 'name': 'Abel', 'gender': 'MALE', 'deathDate': '1950-05-05', 'parents': ['1', '2']},
        {'id': '5', 'name': 'Seth', 'gender': 'MALE', 'spouses': ['6', '7'],
         'children': ['8', '9'], 'parents': ['1', '2']},
        {'id': '6', 'name': 'Azura', 'gender': 'FEMALE', 'spouses': ['5'], 'children': ['8']},
        {'id': '7', 'name': 'Noam', 'gender': 'FEMALE', 'spouses': ['5'], 'children': ['9']},
        {'id': '8', 'name': 'Enosh', 'gender': 'MALE', 'parents': ['5', '6']},
        {'id': '9', 'name': 'Naamah', 'nickname': 'Na', 'gender': 'FEMALE', 'parents': ['5', '7']},
    ]
    return [member_from_dict(r) for r in records]
