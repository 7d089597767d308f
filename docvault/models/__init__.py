"""Models package. Import all models so ``create_all`` can discover them."""

from docvault.models.file_record import FileRow
from docvault.models.profile import ProfileRow

__all__ = ["FileRow", "ProfileRow"]
