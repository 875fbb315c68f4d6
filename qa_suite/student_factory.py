"""Randomized student records for the onboarding tests."""
from __future__ import annotations

import random
import secrets
from dataclasses import dataclass
from typing import Optional

ADULT = "Adult"
CHILD = "Child"

FIRST_NAMES = [
    "Amelia", "Benjamin", "Chloe", "Daniel", "Elena", "Felix", "Grace", "Hugo",
    "Isla", "Jonas", "Keira", "Liam", "Maya", "Noah", "Olivia", "Pablo",
    "Quinn", "Rosa", "Samuel", "Tara", "Umar", "Vera", "William", "Yara", "Zoe",
]
LAST_NAMES = [
    "Anderson", "Brooks", "Castillo", "Dawson", "Ellis", "Fischer", "Garcia",
    "Hughes", "Ivanova", "Jensen", "Kowalski", "Lambert", "Moreno", "Nakamura",
    "Okafor", "Peters", "Quintero", "Reyes", "Schmidt", "Turner", "Underwood",
    "Vasquez", "Whitaker", "Young", "Zimmerman",
]
EMAIL_DOMAINS = ["example.com", "example.org", "example.net"]


@dataclass(frozen=True)
class Student:
    full_name: str
    email: str
    phone: str
    type: str
    parent: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type not in (ADULT, CHILD):
            raise ValueError(f"Unknown student type {self.type!r}")
        if self.type == CHILD and not self.parent:
            raise ValueError("Child students need a parent")
        if self.type == ADULT and self.parent is not None:
            raise ValueError("Adult students cannot have a parent")

    @property
    def first_name(self) -> str:
        return self.full_name.split(" ", 1)[0]

    @property
    def last_name(self) -> str:
        return self.full_name.split(" ", 1)[1]


def _person_name() -> tuple[str, str]:
    return random.choice(FIRST_NAMES), random.choice(LAST_NAMES)


def _email_for(first_name: str, last_name: str) -> str:
    # hex suffix keeps parallel workers from colliding on common names
    local = f"{first_name}.{last_name}.{secrets.token_hex(3)}".lower()
    return f"{local}@{random.choice(EMAIL_DOMAINS)}"


def _national_phone() -> str:
    return f"({random.randint(201, 989)}) {random.randint(200, 999)}-{random.randint(0, 9999):04d}"


class StudentFactory:
    @staticmethod
    def generate_adult_student() -> Student:
        first_name, last_name = _person_name()
        return Student(
            full_name=f"{first_name} {last_name}",
            email=_email_for(first_name, last_name),
            phone=_national_phone(),
            type=ADULT,
        )

    @staticmethod
    def generate_child_student() -> Student:
        first_name, last_name = _person_name()
        parent_first, parent_last = _person_name()
        return Student(
            full_name=f"{first_name} {last_name}",
            email=_email_for(first_name, last_name),
            phone=_national_phone(),
            type=CHILD,
            parent=f"{parent_first} {parent_last}",
        )
