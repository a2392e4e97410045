"""Reusable description catalog."""

import unicodedata
from datetime import datetime, UTC
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import JournalEntryDescription


def normalize_description(text: Optional[str]) -> Optional[str]:
    """Trim, lowercase and fold to ASCII; None for blank input."""
    if text is None:
        return None
    trimmed = text.strip()
    if not trimmed:
        return None
    folded = unicodedata.normalize("NFKD", trimmed.lower())
    return folded.encode("ascii", "ignore").decode("ascii")


class DescriptionResolver:
    """Find or create catalog descriptions, counting their usage."""

    def __init__(self, db: Database):
        self.db = db

    def resolve(self, text: Optional[str]) -> Optional[JournalEntryDescription]:
        """Return the catalog row for text, bumping its usage.

        Returns None for blank text.
        """
        normalized = normalize_description(text)
        if normalized is None:
            return None

        now = datetime.now(UTC)
        existing = self.db.get_description_by_text(normalized)
        if existing is not None:
            self.db.touch_description(existing.id, now)
        else:
            self.db.create_description(normalized, now)
        return self.db.get_description_by_text(normalized)
