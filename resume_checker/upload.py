"""
Resume Checker - Upload
Turns an uploaded resume file into the text sent for analysis.

Only text-like files are read. PDF and DOCX content is NOT extracted: the
analysis receives a placeholder naming the file instead.
"""

import logging
from pathlib import PurePath
from typing import Optional

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".pdf", ".docx", ".txt", ".md"}
TEXT_EXTENSIONS = {".txt", ".md"}
PLACEHOLDER_TEMPLATE = "Simulated resume content for {file_name}"


def file_extension(file_name: str) -> str:
    return PurePath(file_name).suffix.lower()


def is_allowed_file(file_name: str) -> bool:
    return file_extension(file_name) in ALLOWED_EXTENSIONS


def is_text_file(file_name: str, content_type: Optional[str] = None) -> bool:
    return content_type == "text/plain" or file_extension(file_name) in TEXT_EXTENSIONS


def extract_resume_text(file_name: str, content: bytes,
                        content_type: Optional[str] = None) -> str:
    """Decoded text for text-like files, a placeholder string for anything else."""
    if is_text_file(file_name, content_type):
        return content.decode("utf-8", errors="replace")

    # TODO: extract PDF/DOCX text; until then the analysis scores this placeholder
    logger.warning(f"No text extraction for {file_name} ({content_type}); using placeholder content")
    return PLACEHOLDER_TEMPLATE.format(file_name=file_name)
