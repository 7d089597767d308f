"""Category classifier — maps a declared MIME type or file extension to a category.

The classifier is total: anything it does not recognise is ``other``.
"""

from enum import Enum
from pathlib import PurePosixPath
from typing import Optional


class Category(str, Enum):
    """Semantic document categories, stored on the record at upload time."""

    IMAGE = "image"
    PDF = "pdf"
    WORD = "word"
    EXCEL = "excel"
    POWERPOINT = "powerpoint"
    TEXT = "text"
    ZIP = "zip"
    VIDEO = "video"
    AUDIO = "audio"
    OTHER = "other"


# Checked in order; the first category whose set contains the extension wins.
EXTENSIONS = (
    (Category.PDF, {"pdf"}),
    (Category.IMAGE, {"jpg", "jpeg", "png", "gif", "webp", "svg", "bmp"}),
    (Category.EXCEL, {"xls", "xlsx", "csv"}),
    (Category.WORD, {"doc", "docx", "odt", "rtf"}),
    (Category.POWERPOINT, {"ppt", "pptx"}),
    (Category.TEXT, {"txt", "md"}),
    (Category.VIDEO, {"mp4", "mov", "avi", "mkv", "webm"}),
    (Category.AUDIO, {"mp3", "wav", "ogg", "flac"}),
    (Category.ZIP, {"zip", "rar", "7z", "tar", "gz"}),
    (Category.TEXT, {"js", "ts", "tsx", "jsx", "py", "html", "css", "json"}),
)

PREVIEWABLE = {Category.IMAGE, Category.PDF, Category.VIDEO, Category.AUDIO}


def extension_of(file_name: str) -> str:
    """Lower-cased extension without the dot, or ``""``."""
    return PurePosixPath(file_name or "").suffix.lstrip(".").lower()


def _from_mime(mime: str) -> Category:
    if mime == "application/pdf":
        return Category.PDF
    if mime.startswith("image/"):
        return Category.IMAGE
    if mime.startswith("video/"):
        return Category.VIDEO
    if mime.startswith("audio/"):
        return Category.AUDIO
    if "spreadsheet" in mime or "excel" in mime or mime == "text/csv":
        return Category.EXCEL
    if "word" in mime or "opendocument.text" in mime:
        return Category.WORD
    if "presentation" in mime or "powerpoint" in mime:
        return Category.POWERPOINT
    if mime == "text/plain" or "javascript" in mime or "json" in mime or "html" in mime:
        return Category.TEXT
    if "zip" in mime or "rar" in mime or "tar" in mime:
        return Category.ZIP
    return Category.OTHER


def _from_extension(file_name: str) -> Category:
    ext = extension_of(file_name)
    for category, extensions in EXTENSIONS:
        if ext in extensions:
            return category
    return Category.OTHER


def classify(declared_type: Optional[str], file_name: str = "") -> Category:
    """Derive the category of an upload.

    A non-empty declared type always decides; the extension is only consulted
    when the client sent no content type.
    """
    if declared_type:
        return _from_mime(declared_type)
    return _from_extension(file_name)


def preview_kind(category: Category) -> Optional[str]:
    """Which inline viewer can render this category from an access link, if any."""
    return category.value if category in PREVIEWABLE else None


def format_size(size_bytes: int) -> str:
    """Human-readable size: ``0 B``, ``512 B``, ``1.5 KB``, ``2 MB``."""
    if size_bytes <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(size_bytes)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 1):g} {units[i]}"
