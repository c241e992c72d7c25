"""Signed-in user model."""

from dataclasses import asdict, dataclass
from typing import Any, Literal


@dataclass
class User:
    """The (mock) signed-in user."""

    id: str
    email: str
    name: str
    subscription: Literal["free", "premium"] = "free"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=str(data.get("id", "1")),
            email=str(data.get("email", "")),
            name=str(data.get("name", "")),
            subscription="premium" if data.get("subscription") == "premium" else "free",
        )
