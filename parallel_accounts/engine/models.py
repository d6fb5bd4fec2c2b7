"""Value objects flowing through the pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, field_validator

# NANP shape: optional +1/1 prefix, optional parentheses around the area code,
# "-", "." or space separators.
_PHONE_PATTERN = re.compile(
    r"^(?:\+?1[\s.-]?)?(?:\(\d{3}\)|\d{3})[\s.-]?\d{3}[\s.-]?\d{4}$"
)


def has_valid_number(number: str | None) -> bool:
    """Return True when ``number`` looks like a dialable US phone number."""

    if not number:
        return False
    return _PHONE_PATTERN.match(number.strip()) is not None


@dataclass(frozen=True, slots=True)
class Batch:
    """One listing page: identifiers in service order plus the next cursor."""

    ids: tuple[str, ...]
    token: str | None = None
    sequence: int = 0

    def __post_init__(self) -> None:
        if self.token == "":
            object.__setattr__(self, "token", None)

    @property
    def is_last(self) -> bool:
        return self.token is None

    def __len__(self) -> int:
        return len(self.ids)


class AccountRecord(BaseModel):
    """Full account detail as returned by the detail route."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    name: str
    age: int
    number: str | None = None
    photo: str | None = None
    bio: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @property
    def rank_key(self) -> int:
        return self.age

    @property
    def display_key(self) -> str:
        return self.name

    def has_valid_number(self) -> bool:
        return has_valid_number(self.number)

    def summary(self) -> str:
        return f"{self.id}: {self.name}, {self.age}, {self.number or '-'}"


__all__ = ["AccountRecord", "Batch", "has_valid_number"]
