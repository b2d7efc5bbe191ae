#!/usr/bin/env python3
"""Map category payloads onto the descriptor `properties` block."""

from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from object_data import (
    BannerPayload,
    ExportVariant,
    FootpathItemPayload,
    FootpathPayload,
    LargeSceneryPayload,
    LegacyObject,
    ObjectPayload,
    ObjectType,
    ParkEntrancePayload,
    RidePayload,
    SceneryGroupPayload,
    SmallSceneryPayload,
    WallPayload,
    WaterPayload,
)

Properties = Dict[str, object]

NO_SCROLLING = 0xFF
NO_RIDE_TYPE = 0xFF

SUPPORT_TYPE_NAMES = {0: "box", 1: "pole"}

FOOTPATH_ITEM_RENDER_AS = {0: "lamp", 1: "bin", 2: "bench", 3: "fountain"}

FOOTPATH_ITEM_FLAGS: Tuple[Tuple[str, int], ...] = (
    ("isBin", 1 << 0),
    ("isBench", 1 << 1),
    ("isBreakable", 1 << 2),
    ("isLamp", 1 << 3),
    ("isJumpingFountainWater", 1 << 4),
    ("isJumpingFountainSnow", 1 << 5),
    ("isAllowedOnQueue", 1 << 6),
    ("isAllowedOnSlope", 1 << 7),
    ("isTelevision", 1 << 8),
)

SMALL_SCENERY_FLAGS: Tuple[Tuple[str, int], ...] = (
    ("isFullTile", 1 << 0),
    ("isRotatable", 1 << 3),
    ("isAnimated", 1 << 4),
    ("canWither", 1 << 5),
    ("isDiagonal", 1 << 8),
    ("hasGlass", 1 << 9),
    ("hasPrimaryColour", 1 << 10),
)

LARGE_SCENERY_FLAGS: Tuple[Tuple[str, int], ...] = (
    ("hasPrimaryColour", 1 << 0),
    ("hasSecondaryColour", 1 << 1),
    ("isAnimated", 1 << 3),
    ("isPhotogenic", 1 << 4),
)

WALL_FLAGS: Tuple[Tuple[str, int], ...] = (
    ("hasPrimaryColour", 1 << 0),
    ("hasGlass", 1 << 1),
)


def flag_properties(flags: int, table: Tuple[Tuple[str, int], ...]) -> Properties:
    return {name: bool(flags & mask) for name, mask in table}


def scrolling_properties(scrolling_mode: int) -> Properties:
    if scrolling_mode == NO_SCROLLING:
        return {}
    return {"scrollingMode": scrolling_mode}


def _ride_properties(payload: RidePayload) -> Properties:
    return {
        "rideTypes": [ride_type for ride_type in payload.ride_types if ride_type != NO_RIDE_TYPE],
        "minCarsPerTrain": payload.min_cars_per_train,
        "maxCarsPerTrain": payload.max_cars_per_train,
    }


def _small_scenery_properties(payload: SmallSceneryPayload) -> Properties:
    properties: Properties = {
        "price": payload.price,
        "removalPrice": payload.removal_price,
        "height": payload.height,
    }
    properties.update(flag_properties(payload.flags, SMALL_SCENERY_FLAGS))
    if properties["isAnimated"]:
        properties["animationDelay"] = payload.animation_delay
        properties["animationMask"] = payload.animation_mask
        properties["numFrames"] = payload.num_frames
    return properties


def _large_scenery_properties(payload: LargeSceneryPayload) -> Properties:
    properties: Properties = {"price": payload.price, "removalPrice": payload.removal_price}
    properties.update(flag_properties(payload.flags, LARGE_SCENERY_FLAGS))
    return properties


def _wall_properties(payload: WallPayload) -> Properties:
    properties: Properties = {"height": payload.height, "price": payload.price}
    properties.update(scrolling_properties(payload.scrolling_mode))
    properties.update(flag_properties(payload.flags, WALL_FLAGS))
    return properties


def _banner_properties(payload: BannerPayload) -> Properties:
    properties: Properties = {"price": payload.price}
    properties.update(scrolling_properties(payload.scrolling_mode))
    properties["hasPrimaryColour"] = bool(payload.flags & 1)
    return properties


def _footpath_properties(payload: FootpathPayload) -> Properties:
    properties: Properties = {"supportType": SUPPORT_TYPE_NAMES.get(payload.support_type, "box")}
    properties.update(scrolling_properties(payload.scrolling_mode))
    properties["editorOnly"] = payload.editor_only
    properties["hasSupportImages"] = payload.has_support_images
    properties["hasElevatedPathImages"] = payload.has_elevated_path_images
    return properties


def _footpath_item_properties(payload: FootpathItemPayload) -> Properties:
    properties: Properties = {
        "renderAs": FOOTPATH_ITEM_RENDER_AS.get(payload.draw_type, "lamp"),
        "price": payload.price,
    }
    properties.update(flag_properties(payload.flags, FOOTPATH_ITEM_FLAGS))
    return properties


def _scenery_group_properties(payload: SceneryGroupPayload) -> Properties:
    costumes: List[int] = [bit for bit in range(32) if payload.entertainer_costumes & (1 << bit)]
    return {"priority": payload.priority, "entertainerCostumes": costumes}


def _park_entrance_properties(payload: ParkEntrancePayload) -> Properties:
    properties = scrolling_properties(payload.scrolling_mode)
    properties["textHeight"] = payload.text_height
    return properties


def _water_properties(payload: WaterPayload) -> Properties:
    return {"allowDucks": payload.allow_ducks}


def _no_properties(payload: ObjectPayload) -> Properties:
    return {}


PROPERTY_MAPPERS: Dict[ObjectType, Callable] = {
    ObjectType.RIDE: _ride_properties,
    ObjectType.SMALL_SCENERY: _small_scenery_properties,
    ObjectType.LARGE_SCENERY: _large_scenery_properties,
    ObjectType.WALL: _wall_properties,
    ObjectType.BANNER: _banner_properties,
    ObjectType.FOOTPATH: _footpath_properties,
    ObjectType.FOOTPATH_ITEM: _footpath_item_properties,
    ObjectType.SCENERY_GROUP: _scenery_group_properties,
    ObjectType.PARK_ENTRANCE: _park_entrance_properties,
    ObjectType.WATER: _water_properties,
    ObjectType.SCENARIO_TEXT: _no_properties,
    ObjectType.OTHER: _no_properties,
}

missing_mappers = set(ObjectType) - set(PROPERTY_MAPPERS)
if missing_mappers:
    raise RuntimeError(f"No property mapper for {sorted(t.name for t in missing_mappers)}")


def object_properties(obj: LegacyObject) -> Properties:
    return PROPERTY_MAPPERS[obj.object_type](obj.payload)


def footpath_split_properties(payload: FootpathPayload, variant: ExportVariant) -> Properties:
    if variant == ExportVariant.FOOTPATH_SURFACE:
        return {"editorOnly": payload.editor_only, "isQueue": False}
    if variant == ExportVariant.FOOTPATH_QUEUE:
        return {"editorOnly": payload.editor_only, "isQueue": True}
    if variant == ExportVariant.FOOTPATH_RAILINGS:
        properties: Properties = {"supportType": SUPPORT_TYPE_NAMES.get(payload.support_type, "box")}
        properties.update(scrolling_properties(payload.scrolling_mode))
        properties["hasSupportImages"] = payload.has_support_images
        properties["hasElevatedPathImages"] = payload.has_elevated_path_images
        return properties
    raise ValueError(f"{variant} is not a footpath split variant")
