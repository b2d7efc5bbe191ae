#!/usr/bin/env python3
"""
object_strings.py
=================

Localised text for exported objects.

Legacy strings come from the object's string table (one entry per text
field, one string per language slot). Replacement strings can be supplied
as a directory of language files in the `.txt` format:

    [ADVENT1 ]
    STR_NAME    :Adventure Trail
    STR_DESC    :A guided walk through the jungle
    STR_CPTY    :4 passengers per car

Replacement strings win over legacy strings for the same field and
language; the legacy strings fill the gaps.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from object_data import LegacyObject, ObjectType

StringMap = Dict[str, Dict[str, str]]
OverrideStrings = Dict[str, StringMap]

LANGUAGE_CODES: Dict[int, str] = {
    0: "en-GB",
    1: "en-US",
    2: "fr-FR",
    3: "de-DE",
    4: "es-ES",
    5: "it-IT",
    6: "nl-NL",
    7: "sv-SE",
    8: "ja-JP",
    9: "ko-KR",
    10: "zh-CN",
    11: "zh-TW",
    13: "pt-BR",
}

# Double-byte languages store each glyph as 0xFF followed by a big-endian code unit.
MULTIBYTE_CODECS: Dict[str, str] = {
    "ja-JP": "cp932",
    "ko-KR": "cp949",
    "zh-CN": "gbk",
    "zh-TW": "cp950",
}
MULTIBYTE_PREFIX = 0xFF
SINGLE_BYTE_CODEC = "cp1252"

NOT_TRANSLATED_MARKER = "#not translated"

RIDE_FIELDS: Tuple[str, ...] = ("name", "description", "capacity")
DEFAULT_FIELDS: Tuple[str, ...] = ("name",)

LANGUAGE_FILE_KEYS: Dict[str, str] = {
    "STR_NAME": "name",
    "STR_DESC": "description",
    "STR_CPTY": "capacity",
}


def language_code(slot: int) -> str:
    return LANGUAGE_CODES.get(slot, str(slot))


def valid_fields(object_type: ObjectType) -> Tuple[str, ...]:
    if object_type == ObjectType.RIDE:
        return RIDE_FIELDS
    return DEFAULT_FIELDS


def decode_legacy_text(language: str, raw: bytes) -> str:
    codec = MULTIBYTE_CODECS.get(language)
    if codec is None:
        return raw.decode(SINGLE_BYTE_CODEC, errors="replace")

    parts: List[str] = []
    pos = 0
    while pos < len(raw):
        value = raw[pos]
        if value == MULTIBYTE_PREFIX and pos + 2 < len(raw):
            parts.append(raw[pos + 1:pos + 3].decode(codec, errors="replace"))
            pos += 3
        else:
            parts.append(bytes((value,)).decode(SINGLE_BYTE_CODEC, errors="replace"))
            pos += 1
    return "".join(parts)


def is_useful_string(text: str) -> bool:
    if not text:
        return False
    return not text.lower().startswith(NOT_TRANSLATED_MARKER)


def legacy_field_strings(obj: LegacyObject, index: int) -> Dict[str, str]:
    """Decoded strings of one string table entry, filtered and de-duplicated."""
    entry = obj.string_table.entry(index)
    if entry is None:
        return {}

    decoded: List[Tuple[str, str]] = []
    for slot, raw in sorted(entry.strings.items()):
        language = language_code(slot)
        text = decode_legacy_text(language, raw).strip()
        if is_useful_string(text):
            decoded.append((language, text))

    if not decoded:
        return {}

    # Without an en-GB string the lowest surviving slot is the primary and is kept.
    primary_language, primary_text = decoded[0]
    result = {primary_language: primary_text}
    for language, text in decoded[1:]:
        if text != primary_text:
            result[language] = text
    return result


def legacy_strings(obj: LegacyObject) -> StringMap:
    strings: StringMap = {}
    for index, field_name in enumerate(valid_fields(obj.object_type)):
        values = legacy_field_strings(obj, index)
        if values:
            strings[field_name] = values
    return strings


def overlay_strings(ours: Mapping[str, Mapping[str, str]], theirs: Mapping[str, Mapping[str, str]]) -> StringMap:
    """Return *theirs* with every field/language present in *ours* replaced or added."""
    result: StringMap = {field_name: dict(values) for field_name, values in theirs.items()}
    for field_name, values in ours.items():
        result.setdefault(field_name, {}).update(values)
    return result


def select_strings(obj: LegacyObject, overrides: Optional[Mapping[str, Mapping[str, str]]] = None) -> StringMap:
    merged = overlay_strings(overrides or {}, legacy_strings(obj))
    allowed = valid_fields(obj.object_type)
    return {
        field_name: values
        for field_name, values in merged.items()
        if field_name in allowed and values
    }


def overrides_for_object(overrides: Mapping[str, StringMap], obj: LegacyObject) -> StringMap:
    return overrides.get(obj.file_name.strip().upper(), {})


# ---------------------------------------------------------------------------
# Language files
# ---------------------------------------------------------------------------

def parse_language_file(text: str, language: str, into: OverrideStrings) -> None:
    section: Optional[str] = None
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("[") and stripped.endswith("]"):
            section = stripped[1:-1].strip().upper()
            continue
        if section is None or ":" not in stripped:
            continue
        key, value = stripped.split(":", 1)
        field_name = LANGUAGE_FILE_KEYS.get(key.strip())
        if field_name is None:
            continue
        value = value.strip()
        if value:
            into.setdefault(section, {}).setdefault(field_name, {})[language] = value


def load_override_strings(directory: Path) -> OverrideStrings:
    strings: OverrideStrings = {}
    files = sorted(Path(directory).glob("*.txt"))
    for path in files:
        language = path.stem
        parse_language_file(path.read_text(encoding="utf-8-sig"), language, strings)
    logging.info(
        "Loaded replacement strings for %d object(s) from %d language file(s)",
        len(strings),
        len(files),
    )
    return strings
