"""
Font Resolution
===============

Maps caller-supplied font file names onto a sandboxed fonts directory and
loads the resolved files for the layout engine.
"""

import io
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from PIL import ImageFont  # type: ignore

from html_to_image.core.errors import ApiError

PATH_SEPARATORS = ("/", "\\")


@dataclass(frozen=True)
class ResolvedFont:
    """A font file that passed resolution.

    ``name`` is what error messages show; for network requests it is the
    caller-supplied file name so absolute paths never reach the caller.
    """

    name: str
    path: Path


@dataclass(frozen=True)
class LoadedFont:
    """Font bytes with the family and style names read from the file."""

    name: str
    data: bytes
    family: str
    style: str


def resolve_requested_fonts(
    fonts_dir: Optional[Path], requested: Optional[Sequence[str]]
) -> List[ResolvedFont]:
    """
    Resolve requested font names against the configured fonts directory.

    An empty or missing request resolves to no fonts, even when the server
    has no fonts directory.

    Raises:
        ApiError: ``fonts_not_allowed`` if fonts are requested but disabled
    """
    if not requested:
        return []
    if fonts_dir is None:
        raise ApiError.fonts_not_allowed()
    return resolve_font_paths(fonts_dir, requested)


def resolve_font_paths(fonts_dir: Path, requested: Sequence[str]) -> List[ResolvedFont]:
    """
    Resolve each name inside ``fonts_dir``, all or nothing.

    The layered checks run in this order for every name:

    1. a name containing ``/`` or ``\\`` is refused before any filesystem call;
    2. the joined path is canonicalized (``..`` and symlinks resolved); a path
       that does not exist is reported as not found;
    3. the canonical path must lie inside the canonical fonts directory.

    Raises:
        ApiError: ``fonts_not_allowed`` for separators and sandbox escapes,
            ``validation`` for names that do not exist
    """
    root: Optional[Path] = None
    resolved: List[ResolvedFont] = []
    for name in requested:
        if any(sep in name for sep in PATH_SEPARATORS):
            raise ApiError.fonts_not_allowed()

        if root is None:
            root = _canonicalize_root(fonts_dir)
        try:
            canonical = (root / name).resolve(strict=True)
        except (OSError, RuntimeError, ValueError) as e:
            reason = _describe_resolve_error(e)
            raise ApiError.validation(f"font not found: {name} ({reason})") from e

        if not canonical.is_relative_to(root):
            raise ApiError.fonts_not_allowed()
        resolved.append(ResolvedFont(name=name, path=canonical))
    return resolved


def _describe_resolve_error(error: Exception) -> str:
    # Exception text carries absolute paths; only fixed reasons are reported.
    if isinstance(error, OSError) and error.strerror:
        return error.strerror
    if isinstance(error, RuntimeError):
        return "symlink loop"
    return "invalid font name"


def _canonicalize_root(fonts_dir: Path) -> Path:
    try:
        return fonts_dir.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        # The directory is validated at startup; it vanished since.
        raise ApiError.fonts_not_allowed() from e


def load_fonts(fonts: Sequence[ResolvedFont]) -> List[LoadedFont]:
    """
    Read every resolved font and check that it holds a usable face.

    Raises:
        ApiError: ``validation`` for unreadable files or files without a face
    """
    return [load_font(font) for font in fonts]


def load_font(font: ResolvedFont) -> LoadedFont:
    try:
        data = font.path.read_bytes()
    except OSError as e:
        raise ApiError.validation(f"failed to read font at {font.name}") from e

    try:
        face = ImageFont.truetype(io.BytesIO(data), size=16)
        family, style = face.getname()
    except (OSError, ValueError) as e:
        raise ApiError.validation(f"no loadable fonts found at {font.name}") from e

    return LoadedFont(name=font.name, data=data, family=family or font.path.stem, style=style or "")
