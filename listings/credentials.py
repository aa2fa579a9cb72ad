"""
Login gate checked against a user/password table kept next to the listings sheet.
"""
from __future__ import annotations

import logging
from pathlib import Path

from django.conf import settings

from .sheet_reader import read_table

logger = logging.getLogger(__name__)

USER_FIELD = "user"
PASSWORD_FIELD = "password"


def default_credentials_source() -> str:
    return str(
        getattr(
            settings,
            "MAP_CREDENTIALS_SOURCE",
            Path(settings.BASE_DIR) / "media" / "credentials.csv",
        )
    )


def verify_credentials(username: str, password: str, source: str | Path | None = None) -> bool:
    """
    Fetch the credentials table fresh and look for an exact user/password match.
    Raises IngestionFailure when the table cannot be read.
    """
    if not username or not password:
        return False

    table = read_table(source or default_credentials_source())
    if USER_FIELD not in table.columns or PASSWORD_FIELD not in table.columns:
        logger.warning("Credentials table lacks '%s'/'%s' columns", USER_FIELD, PASSWORD_FIELD)
        return False

    valid = table[(table[USER_FIELD] != "") & (table[PASSWORD_FIELD] != "")]
    matched = ((valid[USER_FIELD] == username) & (valid[PASSWORD_FIELD] == password)).any()
    if matched:
        logger.info("Login succeeded for %s", username)
    else:
        logger.info("Login rejected for %s", username)
    return bool(matched)
