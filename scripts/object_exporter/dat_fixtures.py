#!/usr/bin/env python3
"""Builders for synthetic `.DAT` files and objects used by the tests."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from dat_reader import FIXED_HEADER_SIZES
from object_data import (
    FootpathPayload,
    IMAGE_FLAG_BMP,
    LegacyImage,
    LegacyObject,
    ObjectPayload,
    ObjectType,
    RawPayload,
    SourceGame,
    StringEntry,
    StringTable,
)

# (width, height, x_offset, y_offset, pixels)
Sprite = Tuple[int, int, int, int, bytes]


def object_flags(object_type: ObjectType, source: SourceGame = SourceGame.RCT2) -> int:
    return (int(source) << 4) | int(object_type)


def footpath_header(support_type: int = 1, flags: int = 0, scrolling_mode: int = 0) -> bytes:
    return struct.pack("<10xBBBx", support_type, flags, scrolling_mode)


def ride_header(ride_types: Tuple[int, int, int] = (2, 0xFF, 0xFF), min_cars: int = 1, max_cars: int = 4) -> bytes:
    header = bytearray(FIXED_HEADER_SIZES[ObjectType.RIDE])
    struct.pack_into("<8xI3BBB", header, 0, 0, *ride_types, min_cars, max_cars)
    return bytes(header)


def blank_header(object_type: ObjectType) -> bytes:
    return bytes(FIXED_HEADER_SIZES[object_type])


def build_string_table(strings: Dict[int, bytes]) -> bytes:
    out = bytearray()
    for language, text in strings.items():
        out.append(language)
        out.extend(text)
        out.append(0)
    out.append(0xFF)
    return bytes(out)


def blank_sprites(count: int) -> List[Sprite]:
    return [(1, 1, 0, 0, bytes((index % 255 + 1,))) for index in range(count)]


def build_image_directory(sprites: Sequence[Sprite]) -> bytes:
    entries = bytearray()
    graphics = bytearray()
    for width, height, x_offset, y_offset, pixels in sprites:
        entries.extend(struct.pack("<IhhhhHH", len(graphics), width, height, x_offset, y_offset, IMAGE_FLAG_BMP, 0))
        graphics.extend(pixels)
    return struct.pack("<II", len(sprites), len(graphics)) + bytes(entries) + bytes(graphics)


def encode_rle_literals(data: bytes) -> bytes:
    out = bytearray()
    for start in range(0, len(data), 128):
        block = data[start:start + 128]
        out.append(len(block) - 1)
        out.extend(block)
    return bytes(out)


def build_dat(
    object_type: ObjectType,
    name: str,
    header: Optional[bytes] = None,
    string_tables: Sequence[Dict[int, bytes]] = ({0: b"Test Object"},),
    sprites: Sequence[Sprite] = (),
    source: SourceGame = SourceGame.RCT2,
    extra: bytes = b"",
    checksum: int = 0x12345678,
    rle: bool = False,
) -> bytes:
    chunk = bytearray(header if header is not None else blank_header(object_type))
    for table in string_tables:
        chunk.extend(build_string_table(table))
    chunk.extend(extra)
    chunk.extend(build_image_directory(sprites))

    encoding = 0
    payload = bytes(chunk)
    if rle:
        encoding = 1
        payload = encode_rle_literals(payload)

    file_header = struct.pack("<I8sI", object_flags(object_type, source), name.ljust(8).encode("ascii"), checksum)
    return file_header + struct.pack("<BI", encoding, len(payload)) + payload


def write_dat(path: Path, data: bytes) -> Path:
    path.write_bytes(data)
    return path


def make_object(
    object_type: ObjectType = ObjectType.SMALL_SCENERY,
    file_name: str = "TREE1",
    strings: Sequence[Dict[int, bytes]] = ({0: b"Tree"},),
    image_count: int = 0,
    payload: Optional[ObjectPayload] = None,
    source: SourceGame = SourceGame.RCT2,
    checksum: int = 0xCAFEBABE,
) -> LegacyObject:
    images = tuple(
        LegacyImage(
            width=1,
            height=1,
            x_offset=0,
            y_offset=0,
            flags=IMAGE_FLAG_BMP,
            pixels=np.full((1, 1), index % 255 + 1, dtype=np.uint8),
        )
        for index in range(image_count)
    )
    return LegacyObject(
        source=source,
        object_type=object_type,
        file_name=file_name,
        checksum=checksum,
        flags=object_flags(object_type, source),
        string_table=StringTable(entries=[StringEntry(strings=dict(table)) for table in strings]),
        images=images,
        payload=payload if payload is not None else RawPayload(data=b""),
    )


def make_footpath(
    support_type: int = 1,
    flags: int = 0,
    image_count: int = 168,
    file_name: str = "TARMAC",
) -> LegacyObject:
    return make_object(
        object_type=ObjectType.FOOTPATH,
        file_name=file_name,
        strings=({0: b"Tarmac Footpath"},),
        image_count=image_count,
        payload=FootpathPayload(support_type=support_type, flags=flags, scrolling_mode=0),
    )
