#!/usr/bin/env python3
"""Decide which sub-objects an object is exported as, and under which ids."""

from __future__ import annotations

from typing import List, Optional, Tuple

from object_data import ExportVariant, LegacyObject, ObjectType
from object_ids import object_id, object_type_name

SURFACE_GROUP = "footpath_surface"
RAILINGS_GROUP = "footpath_railings"

SPLIT_VARIANTS: Tuple[ExportVariant, ...] = (
    ExportVariant.FOOTPATH_SURFACE,
    ExportVariant.FOOTPATH_QUEUE,
    ExportVariant.FOOTPATH_RAILINGS,
)

OVERRIDE_SUFFIXES = {
    ExportVariant.FOOTPATH_SURFACE: ".surface",
    ExportVariant.FOOTPATH_QUEUE: ".queue",
    ExportVariant.FOOTPATH_RAILINGS: ".railings",
}

SplitPlan = List[Tuple[ExportVariant, str]]


def should_split(obj: LegacyObject, split_footpaths: bool) -> bool:
    return split_footpaths and obj.object_type == ObjectType.FOOTPATH


def split_variant_id(obj: LegacyObject, variant: ExportVariant) -> str:
    if variant == ExportVariant.FOOTPATH_SURFACE:
        return object_id(obj, SURFACE_GROUP)
    if variant == ExportVariant.FOOTPATH_QUEUE:
        return object_id(obj, SURFACE_GROUP, "queue")
    if variant == ExportVariant.FOOTPATH_RAILINGS:
        return object_id(obj, RAILINGS_GROUP)
    return object_id(obj)


def split(obj: LegacyObject, id_override: Optional[str] = None, split_footpaths: bool = False) -> SplitPlan:
    if not should_split(obj, split_footpaths):
        return [(ExportVariant.NONE, id_override or object_id(obj))]
    if id_override:
        return [(variant, id_override + OVERRIDE_SUFFIXES[variant]) for variant in SPLIT_VARIANTS]
    return [(variant, split_variant_id(obj, variant)) for variant in SPLIT_VARIANTS]


def variant_object_type(obj: LegacyObject, variant: ExportVariant) -> str:
    if variant in (ExportVariant.FOOTPATH_SURFACE, ExportVariant.FOOTPATH_QUEUE):
        return SURFACE_GROUP
    if variant == ExportVariant.FOOTPATH_RAILINGS:
        return RAILINGS_GROUP
    return object_type_name(obj.object_type)
