#!/usr/bin/env python3
"""
object_data.py
==============

In-memory representation of a decoded RCT2 object (`.DAT`).

A `LegacyObject` is produced once by a reader (see `dat_reader.py`) and is
never mutated afterwards. Category specific header fields travel in the
`payload` attribute so the exporter can read, for example, footpath flags
without inspecting raw bytes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

import numpy as np


class ObjectDataError(Exception):
    pass


class ObjectType(enum.IntEnum):
    RIDE = 0
    SMALL_SCENERY = 1
    LARGE_SCENERY = 2
    WALL = 3
    BANNER = 4
    FOOTPATH = 5
    FOOTPATH_ITEM = 6
    SCENERY_GROUP = 7
    PARK_ENTRANCE = 8
    WATER = 9
    SCENARIO_TEXT = 10
    OTHER = 15

    @classmethod
    def from_flags(cls, flags: int) -> "ObjectType":
        value = flags & 0x0F
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class SourceGame(enum.IntEnum):
    CUSTOM = 0
    WACKY_WORLDS = 1
    TIME_TWISTER = 2
    OPENRCT2 = 3
    RCT2 = 8
    OTHER = 15

    @classmethod
    def from_flags(cls, flags: int) -> "SourceGame":
        value = (flags >> 4) & 0x0F
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class ExportVariant(enum.Enum):
    NONE = "none"
    FOOTPATH_SURFACE = "surface"
    FOOTPATH_QUEUE = "queue"
    FOOTPATH_RAILINGS = "railings"


# ---------------------------------------------------------------------------
# Strings and images
# ---------------------------------------------------------------------------

@dataclass
class StringEntry:
    # language slot -> raw encoded text (without the NUL terminator)
    strings: Dict[int, bytes] = field(default_factory=dict)


@dataclass
class StringTable:
    entries: List[StringEntry] = field(default_factory=list)

    def entry(self, index: int) -> Optional[StringEntry]:
        if index < 0 or index >= len(self.entries):
            return None
        return self.entries[index]


IMAGE_FLAG_BMP = 0x01
IMAGE_FLAG_RLE = 0x04
IMAGE_FLAG_PALETTE = 0x08


@dataclass
class LegacyImage:
    width: int
    height: int
    x_offset: int
    y_offset: int
    flags: int
    pixels: np.ndarray

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


# ---------------------------------------------------------------------------
# Category payloads
# ---------------------------------------------------------------------------

FOOTPATH_SUPPORT_BOX = 0
FOOTPATH_SUPPORT_POLE = 1

FOOTPATH_FLAG_HAS_SUPPORT_BASE_SPRITE = 1 << 0
FOOTPATH_FLAG_HAS_PATH_BASE_SPRITE = 1 << 1
FOOTPATH_FLAG_EDITOR_ONLY = 1 << 2


@dataclass(frozen=True)
class FootpathPayload:
    support_type: int
    flags: int
    scrolling_mode: int

    @property
    def has_pole_supports(self) -> bool:
        return self.support_type == FOOTPATH_SUPPORT_POLE

    @property
    def has_support_images(self) -> bool:
        return bool(self.flags & FOOTPATH_FLAG_HAS_SUPPORT_BASE_SPRITE)

    @property
    def has_elevated_path_images(self) -> bool:
        return bool(self.flags & FOOTPATH_FLAG_HAS_PATH_BASE_SPRITE)

    @property
    def editor_only(self) -> bool:
        return bool(self.flags & FOOTPATH_FLAG_EDITOR_ONLY)


@dataclass(frozen=True)
class FootpathItemPayload:
    flags: int
    draw_type: int
    tooltip: int
    price: int


@dataclass(frozen=True)
class BannerPayload:
    scrolling_mode: int
    flags: int
    price: int


@dataclass(frozen=True)
class WallPayload:
    tool_id: int
    flags: int
    height: int
    flags2: int
    price: int
    scrolling_mode: int


@dataclass(frozen=True)
class SmallSceneryPayload:
    flags: int
    height: int
    tool_id: int
    price: int
    removal_price: int
    animation_delay: int
    animation_mask: int
    num_frames: int


@dataclass(frozen=True)
class LargeSceneryPayload:
    tool_id: int
    flags: int
    price: int
    removal_price: int


@dataclass(frozen=True)
class RidePayload:
    flags: int
    ride_types: Tuple[int, int, int]
    min_cars_per_train: int
    max_cars_per_train: int


@dataclass(frozen=True)
class SceneryGroupPayload:
    priority: int
    entertainer_costumes: int


@dataclass(frozen=True)
class ParkEntrancePayload:
    scrolling_mode: int
    text_height: int


@dataclass(frozen=True)
class WaterPayload:
    flags: int

    @property
    def allow_ducks(self) -> bool:
        return bool(self.flags & 0x01)


@dataclass(frozen=True)
class RawPayload:
    data: bytes


ObjectPayload = Union[
    FootpathPayload,
    FootpathItemPayload,
    BannerPayload,
    WallPayload,
    SmallSceneryPayload,
    LargeSceneryPayload,
    RidePayload,
    SceneryGroupPayload,
    ParkEntrancePayload,
    WaterPayload,
    RawPayload,
]


@dataclass(frozen=True)
class LegacyObject:
    source: SourceGame
    object_type: ObjectType
    file_name: str
    checksum: int
    flags: int
    string_table: StringTable
    images: Tuple[LegacyImage, ...]
    payload: ObjectPayload

    @property
    def image_count(self) -> int:
        return len(self.images)
