"""
coord_annotator.py
==================
Adds a {{coord}} template to article wikitext.

Order of checks:
  1. {{nobots}} / {{bots|deny=...}} exclusion  -> no change
  2. page already has a {{coord...}} template   -> no change
  3. empty "| coordinates =" / "| coords =" infobox field -> fill it
     with {{coord|...|display=inline,title}}
  4. otherwise append {{coord|...|display=title}} as its own paragraph
"""

import re
from typing import NamedTuple

DISPLAY_INLINE_TITLE = "inline,title"
DISPLAY_INLINE = "inline"
DISPLAY_TITLE = "title"

REASON_EXCLUDED = "Page excludes this bot."
REASON_HAS_COORDS = "Page already has coordinates."
REASON_INFOBOX = "Added coordinates to infobox."
REASON_APPENDED = "Added coordinates at end of article."

HAS_COORD_RE = re.compile(r"\{\{\s*[Cc]oord")
EMPTY_FIELD_RES = [
    re.compile(r"^([ \t]*\|[ \t]*coordinates[ \t]*=[ \t]*)$", re.MULTILINE),
    re.compile(r"^([ \t]*\|[ \t]*coords[ \t]*=[ \t]*)$", re.MULTILINE),
]


class AnnotationResult(NamedTuple):
    text: str
    changed: bool
    reason: str


def exclusion_re(bot_name):
    """Regex for the {{bots}}/{{nobots}} opt-out directives aimed at *bot_name*."""
    return re.compile(
        r"\{\{\s*(nobots|bots\s*\|\s*(allow\s*=\s*none"
        r"|deny\s*=\s*(?!none)[^}]*\b(" + re.escape(bot_name) + r"|all)\b[^}]*"
        r"|optout\s*=\s*all))\s*\}\}",
        re.IGNORECASE,
    )


def format_degrees(value):
    """51.5 -> '51.5', 51.0 -> '51', -0.1 -> '-0.1', -1e-11 -> '0'."""
    text = f"{value:.10f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def coord_template(location, display=DISPLAY_INLINE_TITLE):
    return (
        f"{{{{coord|{format_degrees(location.latitude)}|N|"
        f"{format_degrees(location.longitude)}|E|display={display}}}}}"
    )


def is_excluded(text, bot_name):
    return bool(exclusion_re(bot_name).search(text))


def has_coordinates(text):
    return bool(HAS_COORD_RE.search(text))


def fill_infobox(text, location):
    """Fill the first empty coordinates= and coords= field. Returns (text, filled)."""
    annotation = coord_template(location, DISPLAY_INLINE_TITLE)
    filled = False
    for field_re in EMPTY_FIELD_RES:
        text, n = field_re.subn(lambda m: m.group(1) + annotation, text, count=1)
        filled = filled or n > 0
    return text, filled


def add_coordinates(text, location, bot_name) -> AnnotationResult:
    if is_excluded(text, bot_name):
        return AnnotationResult(text, False, REASON_EXCLUDED)

    if has_coordinates(text):
        return AnnotationResult(text, False, REASON_HAS_COORDS)

    new_text, filled = fill_infobox(text, location)
    if filled:
        return AnnotationResult(new_text, True, REASON_INFOBOX)

    new_text = text.rstrip() + "\n\n" + coord_template(location, DISPLAY_TITLE)
    return AnnotationResult(new_text, True, REASON_APPENDED)
