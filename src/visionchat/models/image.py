"""
Image Data Models
=================

Internal image representations for the ingestion pipeline.

This module defines the two typed records that flow through ingestion:
    - FileInput: a candidate file as yielded by file acquisition
    - ImageDescriptor: an admitted image plus its derived metadata

Design Rules:
    - Both records are immutable (frozen)
    - Neither record decodes or manipulates image data
    - display_name and byte_size never change after admission
"""

import mimetypes
import uuid
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Union


UNKNOWN_FORMAT = "UNKNOWN"


def extension_of(name: str) -> str:
    """
    Uppercased text after the last '.' of a file name.

    Returns UNKNOWN_FORMAT when the name has no '.' or ends with one.
    """
    if "." not in name:
        return UNKNOWN_FORMAT
    ext = name.rsplit(".", 1)[1]
    return ext.upper() or UNKNOWN_FORMAT


def format_file_size(num_bytes: int) -> str:
    """
    Human readable size using 1024-based units up to GB.

    Examples:
        0 -> "0 B", 1536 -> "1.5 KB", 2097152 -> "2 MB"
    """
    if num_bytes <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(num_bytes)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    text = f"{value:.1f}"
    if text.endswith(".0"):
        text = text[:-2]
    return f"{text} {units[index]}"


@dataclass(frozen=True, slots=True)
class FileInput:
    """
    Candidate file handed to the ingestion pipeline.

    Attributes:
        content: Raw file bytes
        declared_size: Size in bytes as reported by acquisition
        content_type: Declared MIME type (e.g. "image/png")
        name: Original file name
    """

    content: bytes
    declared_size: int
    content_type: str
    name: str

    def is_image(self, prefix: str = "image/") -> bool:
        """Whether the declared content type marks this candidate as an image."""
        return self.content_type.lower().startswith(prefix)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "FileInput":
        """Build a candidate from a local file, guessing its content type."""
        path = Path(path)
        content = path.read_bytes()
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            content=content,
            declared_size=len(content),
            content_type=content_type or "application/octet-stream",
            name=path.name,
        )

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the file content."""
        return (
            f"FileInput(name={self.name!r}, "
            f"content_type={self.content_type!r}, "
            f"declared_size={self.declared_size})"
        )


@dataclass(frozen=True, slots=True)
class ImageDescriptor:
    """
    Admitted image and its derived metadata.

    This is the canonical internal representation of one batch entry.
    It is immutable (frozen) to prevent accidental modification.

    Attributes:
        id: Opaque identifier assigned at admission
        content: Original file bytes (never mutated)
        display_name: Original file name
        byte_size: Declared size at admission time
        width: Pixel width, None until decoded
        height: Pixel height, None until decoded
        content_type: Declared MIME type of the candidate
    """

    id: str
    content: bytes
    display_name: str
    byte_size: int
    width: Optional[int] = None
    height: Optional[int] = None
    content_type: str = ""

    @classmethod
    def admit(cls, candidate: FileInput) -> "ImageDescriptor":
        """Create an undecoded descriptor with a fresh id."""
        return cls(
            id=uuid.uuid4().hex,
            content=candidate.content,
            display_name=candidate.name,
            byte_size=candidate.declared_size,
            content_type=candidate.content_type,
        )

    def with_dimensions(self, width: int, height: int) -> "ImageDescriptor":
        """Copy of this descriptor carrying decoded dimensions."""
        return replace(self, width=width, height=height)

    @property
    def has_dimensions(self) -> bool:
        return self.width is not None and self.height is not None

    @property
    def extension(self) -> str:
        return extension_of(self.display_name)

    @property
    def size_text(self) -> str:
        return format_file_size(self.byte_size)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the image bytes."""
        return (
            f"ImageDescriptor(id={self.id!r}, "
            f"display_name={self.display_name!r}, "
            f"byte_size={self.byte_size}, "
            f"width={self.width}, height={self.height})"
        )
