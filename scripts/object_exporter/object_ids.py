#!/usr/bin/env python3
"""Identifiers, type names and provenance defaults for exported objects."""

from __future__ import annotations

from typing import Dict, List

from object_data import LegacyObject, ObjectType, SourceGame

SOURCE_TAGS: Dict[SourceGame, str] = {
    SourceGame.RCT2: "rct2",
    SourceGame.WACKY_WORLDS: "rct2.ww",
    SourceGame.TIME_TWISTER: "rct2.tt",
}

SOURCE_DIRECTORY_NAMES: Dict[SourceGame, str] = {
    SourceGame.RCT2: "rct2",
    SourceGame.WACKY_WORLDS: "rct2ww",
    SourceGame.TIME_TWISTER: "rct2tt",
}

OBJECT_TYPE_NAMES: Dict[ObjectType, str] = {
    ObjectType.RIDE: "ride",
    ObjectType.SMALL_SCENERY: "scenery_small",
    ObjectType.LARGE_SCENERY: "scenery_large",
    ObjectType.WALL: "scenery_wall",
    ObjectType.BANNER: "footpath_banner",
    ObjectType.FOOTPATH: "footpath",
    ObjectType.FOOTPATH_ITEM: "footpath_item",
    ObjectType.SCENERY_GROUP: "scenery_group",
    ObjectType.PARK_ENTRANCE: "park_entrance",
    ObjectType.WATER: "water",
    ObjectType.SCENARIO_TEXT: "other",
    ObjectType.OTHER: "other",
}

AUTHORS_BY_SOURCE: Dict[SourceGame, List[str]] = {
    SourceGame.RCT2: ["Chris Sawyer", "Simon Foster"],
    SourceGame.WACKY_WORLDS: ["Frontier Studios"],
    SourceGame.TIME_TWISTER: ["Frontier Studios"],
}

OTHER_TAG = "other"


def source_tag(source: SourceGame) -> str:
    return SOURCE_TAGS.get(source, OTHER_TAG)


def source_directory_name(source: SourceGame) -> str:
    return SOURCE_DIRECTORY_NAMES.get(source, OTHER_TAG)


def object_type_name(object_type: ObjectType) -> str:
    return OBJECT_TYPE_NAMES[object_type]


def default_authors(source: SourceGame) -> List[str]:
    return list(AUTHORS_BY_SOURCE.get(source, []))


def build_id(source_tag: str, group_prefix: str, file_name_lower: str, suffix: str) -> str:
    """Join the non-empty segments with dots, e.g. ``rct2.footpath_surface.tarmac.queue``."""
    segments = [source_tag, group_prefix, file_name_lower, suffix]
    return ".".join(segment for segment in segments if segment)


def object_id(obj: LegacyObject, group_prefix: str = "", suffix: str = "") -> str:
    return build_id(source_tag(obj.source), group_prefix, obj.file_name.lower(), suffix)


def original_id(obj: LegacyObject) -> str:
    """Legacy identity string: flags, space padded name and checksum."""
    return f"{obj.flags:08X}|{obj.file_name:<8}|{obj.checksum:08X}"
