"""Signed-in user and theme, persisted in the key-value store.

There is no real authentication: any email/password pair signs in as a
mock free-tier user named after the email's local part.
"""

import logging
from typing import Optional

from researchflow.database.store import THEME_KEY, USER_KEY, KeyValueStore, get_json, set_json
from researchflow.errors import ValidationError
from researchflow.models.user import User

logger = logging.getLogger(__name__)

THEMES = ("light", "dark")


class Session:
    """Auth and theme state for one client."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    @property
    def user(self) -> Optional[User]:
        data = get_json(self.store, USER_KEY)
        return User.from_dict(data) if isinstance(data, dict) else None

    @property
    def theme(self) -> str:
        theme = self.store.get(THEME_KEY)
        return theme if theme in THEMES else "light"

    def login(self, email: str, password: str) -> User:
        """Sign in as the mock user for *email*.

        Raises:
            ValidationError: If email or password is blank
        """
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("Email and password are required")
        user = User(id="1", email=email, name=email.split("@")[0], subscription="free")
        set_json(self.store, USER_KEY, user.to_dict())
        logger.info("Signed in as %s", email)
        return user

    def signup(self, email: str, password: str, name: str, accept_terms: bool) -> User:
        """Create the mock account and sign in.

        Raises:
            ValidationError: If a field is blank or the terms are not accepted
        """
        if not accept_terms:
            raise ValidationError("You must accept the terms of service")
        if not (name or "").strip():
            raise ValidationError("Name is required")
        user = self.login(email, password)
        user.name = name.strip()
        set_json(self.store, USER_KEY, user.to_dict())
        return user

    def logout(self) -> None:
        self.store.delete(USER_KEY)

    def toggle_theme(self) -> str:
        """Flip between light and dark and persist the choice."""
        theme = "light" if self.theme == "dark" else "dark"
        self.store.set(THEME_KEY, theme)
        return theme
