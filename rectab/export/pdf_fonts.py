"""Locate and register the fonts used by the PDF writer.

DejaVu Sans covers far more scripts than the standard PDF fonts, so it is
used whenever its TTF files can be found locally. The search looks in the
directory named by ``RECTAB_TTF_DIR``, then in the per-user data directory
of the application and finally in the usual system font directories. When
nothing is found the built-in Helvetica family is used.
"""

import logging
import os
from typing import Dict, List, Optional

from appdirs import user_data_dir
from attrs import define

logger = logging.getLogger(__name__)

FALLBACK_FAMILY = "Helvetica"

DEJAVU_SANS: Dict[str, str] = {
    "normal": "DejaVuSans.ttf",
    "bold": "DejaVuSans-Bold.ttf",
    "italic": "DejaVuSans-Oblique.ttf",
    "boldItalic": "DejaVuSans-BoldOblique.ttf",
}

SYSTEM_FONT_DIRS = (
    "/usr/share/fonts/truetype/dejavu",
    "/usr/share/fonts/dejavu",
    "/usr/share/fonts/TTF",
    "/usr/local/share/fonts",
    "/Library/Fonts",
    os.path.expanduser("~/Library/Fonts"),
    os.path.join(os.environ.get("WINDIR", "C:\\Windows"), "Fonts"),
)

_registered: Optional[str] = None


@define
class FontPaths:
    """Resolved paths for a font family.

    Attributes:
        normal: Regular style path.
        bold: Bold style path.
        italic: Italic style path.
        boldItalic: Bold-italic style path.
    """

    normal: str
    bold: str
    italic: str
    boldItalic: str


def font_dirs() -> List[str]:
    """The directories searched for TTF files, in order."""
    result = []
    value = os.environ.get("RECTAB_TTF_DIR")
    if value:
        result.append(value)
    result.append(os.path.join(user_data_dir("rectab", "rectab"), "fonts"))
    result.extend(SYSTEM_FONT_DIRS)
    return [path for path in result if os.path.isdir(path)]


def locate_family(filenames: Dict[str, str]) -> Optional[FontPaths]:
    """Find a directory that holds all the files of a family."""
    for directory in font_dirs():
        paths = {
            style: os.path.join(directory, name)
            for style, name in filenames.items()
        }
        if all(os.path.isfile(path) for path in paths.values()):
            return FontPaths(**paths)
    return None


def _register_family(family: str, paths: FontPaths) -> None:
    """Register a TTF family and add bold/italic mappings."""
    from reportlab.lib.fonts import addMapping
    from reportlab.pdfbase import pdfmetrics
    from reportlab.pdfbase.ttfonts import TTFont

    mapping = {
        family: paths.normal,
        f"{family}-Bold": paths.bold,
        f"{family}-Italic": paths.italic,
        f"{family}-BoldItalic": paths.boldItalic,
    }
    for name, ttf_path in mapping.items():
        if name not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont(name, ttf_path))

    addMapping(family, 0, 0, family)
    addMapping(family, 1, 0, f"{family}-Bold")
    addMapping(family, 0, 1, f"{family}-Italic")
    addMapping(family, 1, 1, f"{family}-BoldItalic")


def ensure_fonts() -> str:
    """Make sure the preferred font family is registered with reportlab.

    Returns:
        The name of the family to use: "DejaVuSans" or "Helvetica".
    """
    global _registered
    if _registered is not None:
        return _registered

    paths = locate_family(DEJAVU_SANS)
    if paths is None:
        logger.debug("DejaVu Sans not found; using %s", FALLBACK_FAMILY)
        _registered = FALLBACK_FAMILY
        return _registered

    try:
        _register_family("DejaVuSans", paths)
        _registered = "DejaVuSans"
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "DejaVu Sans registration failed, falling back to %s: %s",
            FALLBACK_FAMILY,
            exc,
        )
        _registered = FALLBACK_FAMILY
    return _registered


def bold_font(family: str) -> str:
    """The name of the bold face of a family."""
    return f"{family}-Bold"
