#!/usr/bin/env python3
"""
dat_reader.py
=============

Reader for RCT2 object files (`ObjData/*.DAT`).

File layout:

    header (16 bytes)   flags u32, name char[8], checksum u32
    chunk header        encoding u8, length u32
    chunk data          encoded with one of the sawyer chunk encodings

The decoded chunk holds the category's fixed header, its string tables,
optional category specific data and finally the image directory followed by
the graphics data. Only the parts the exporter needs are decoded; the
category specific variable data is skipped by locating the image directory
through its size invariant (the graphics data always ends the chunk).
"""

from __future__ import annotations

import logging
import struct
from pathlib import Path
from typing import Dict, List, Tuple

import numpy as np

from object_data import (
    BannerPayload,
    FootpathItemPayload,
    FootpathPayload,
    IMAGE_FLAG_BMP,
    IMAGE_FLAG_RLE,
    LargeSceneryPayload,
    LegacyImage,
    LegacyObject,
    ObjectDataError,
    ObjectPayload,
    ObjectType,
    ParkEntrancePayload,
    RawPayload,
    RidePayload,
    SceneryGroupPayload,
    SmallSceneryPayload,
    SourceGame,
    StringEntry,
    StringTable,
    WallPayload,
    WaterPayload,
)

OBJECT_HEADER_SIZE = 16
CHUNK_HEADER_SIZE = 5
IMAGE_ENTRY_SIZE = 16
IMAGE_DIRECTORY_HEADER_SIZE = 8
MAX_IMAGE_COUNT = 0x10000

CHUNK_ENCODING_NONE = 0
CHUNK_ENCODING_RLE = 1
CHUNK_ENCODING_RLE_COMPRESSED = 2
CHUNK_ENCODING_ROTATE = 3

STRING_TABLE_END = 0xFF

# Fixed header size of each category inside the decoded chunk.
FIXED_HEADER_SIZES: Dict[ObjectType, int] = {
    ObjectType.RIDE: 0x1C2,
    ObjectType.SMALL_SCENERY: 0x1C,
    ObjectType.LARGE_SCENERY: 0x1A,
    ObjectType.WALL: 0x0E,
    ObjectType.BANNER: 0x0C,
    ObjectType.FOOTPATH: 0x0E,
    ObjectType.FOOTPATH_ITEM: 0x0E,
    ObjectType.SCENERY_GROUP: 0x10E,
    ObjectType.PARK_ENTRANCE: 0x08,
    ObjectType.WATER: 0x10,
    ObjectType.SCENARIO_TEXT: 0x08,
    ObjectType.OTHER: 0x00,
}

STRING_TABLE_COUNTS: Dict[ObjectType, int] = {
    ObjectType.RIDE: 3,
    ObjectType.SCENARIO_TEXT: 3,
}


# ---------------------------------------------------------------------------
# Chunk decoding
# ---------------------------------------------------------------------------

def decode_rle(data: bytes) -> bytes:
    out = bytearray()
    pos = 0
    size = len(data)
    while pos < size:
        code = data[pos]
        if code & 0x80:
            if pos + 1 >= size:
                raise ObjectDataError("RLE run truncated")
            out.extend(bytes((data[pos + 1],)) * (257 - code))
            pos += 2
        else:
            count = code + 1
            if pos + 1 + count > size:
                raise ObjectDataError("RLE literal truncated")
            out.extend(data[pos + 1:pos + 1 + count])
            pos += 1 + count
    return bytes(out)


def decode_repeat(data: bytes) -> bytes:
    out = bytearray()
    pos = 0
    size = len(data)
    while pos < size:
        code = data[pos]
        if code == 0xFF:
            pos += 1
            if pos >= size:
                raise ObjectDataError("Repeat literal truncated")
            out.append(data[pos])
        else:
            count = (code & 7) + 1
            start = len(out) + (code >> 3) - 32
            if start < 0:
                raise ObjectDataError(f"Repeat copy before start of output ({start})")
            # byte by byte so overlapping copies repeat the pattern
            for index in range(count):
                out.append(out[start + index])
        pos += 1
    return bytes(out)


def decode_rotate(data: bytes) -> bytes:
    out = bytearray(len(data))
    shift = 1
    for index, value in enumerate(data):
        out[index] = ((value >> shift) | (value << (8 - shift))) & 0xFF
        shift = (shift + 2) & 7
    return bytes(out)


def decode_chunk(encoding: int, data: bytes) -> bytes:
    if encoding == CHUNK_ENCODING_NONE:
        return data
    if encoding == CHUNK_ENCODING_RLE:
        return decode_rle(data)
    if encoding == CHUNK_ENCODING_RLE_COMPRESSED:
        return decode_repeat(decode_rle(data))
    if encoding == CHUNK_ENCODING_ROTATE:
        return decode_rotate(data)
    raise ObjectDataError(f"Unknown chunk encoding: {encoding}")


# ---------------------------------------------------------------------------
# Chunk contents
# ---------------------------------------------------------------------------

def read_string_table(data: bytes, pos: int) -> Tuple[StringEntry, int]:
    entry = StringEntry()
    while True:
        if pos >= len(data):
            raise ObjectDataError("String table truncated")
        language = data[pos]
        pos += 1
        if language == STRING_TABLE_END:
            return entry, pos
        end = data.find(b"\x00", pos)
        if end < 0:
            raise ObjectDataError("Unterminated string in string table")
        entry.strings[language] = data[pos:end]
        pos = end + 1


def decode_payload(object_type: ObjectType, header: bytes) -> ObjectPayload:
    if object_type == ObjectType.FOOTPATH:
        support_type, flags, scrolling_mode = struct.unpack_from("<10xBBBx", header)
        return FootpathPayload(support_type=support_type, flags=flags, scrolling_mode=scrolling_mode)
    if object_type == ObjectType.FOOTPATH_ITEM:
        flags, draw_type, tooltip, price = struct.unpack_from("<6xHBBh2x", header)
        return FootpathItemPayload(flags=flags, draw_type=draw_type, tooltip=tooltip, price=price)
    if object_type == ObjectType.BANNER:
        scrolling_mode, flags, price = struct.unpack_from("<6xBBh2x", header)
        return BannerPayload(scrolling_mode=scrolling_mode, flags=flags, price=price)
    if object_type == ObjectType.WALL:
        tool_id, flags, height, flags2, price, scrolling_mode = struct.unpack_from("<6xBBBBhxB", header)
        return WallPayload(
            tool_id=tool_id,
            flags=flags,
            height=height,
            flags2=flags2,
            price=price,
            scrolling_mode=scrolling_mode,
        )
    if object_type == ObjectType.SMALL_SCENERY:
        (
            flags,
            height,
            tool_id,
            price,
            removal_price,
            animation_delay,
            animation_mask,
            num_frames,
        ) = struct.unpack_from("<6xIBBhh4xHHH2x", header)
        return SmallSceneryPayload(
            flags=flags,
            height=height,
            tool_id=tool_id,
            price=price,
            removal_price=removal_price,
            animation_delay=animation_delay,
            animation_mask=animation_mask,
            num_frames=num_frames,
        )
    if object_type == ObjectType.LARGE_SCENERY:
        tool_id, flags, price, removal_price = struct.unpack_from("<6xBBhh", header)
        return LargeSceneryPayload(tool_id=tool_id, flags=flags, price=price, removal_price=removal_price)
    if object_type == ObjectType.RIDE:
        flags, type0, type1, type2, min_cars, max_cars = struct.unpack_from("<8xI3BBB", header)
        return RidePayload(
            flags=flags,
            ride_types=(type0, type1, type2),
            min_cars_per_train=min_cars,
            max_cars_per_train=max_cars,
        )
    if object_type == ObjectType.SCENERY_GROUP:
        priority, costumes = struct.unpack_from("<BxI", header, 0x108)
        return SceneryGroupPayload(priority=priority, entertainer_costumes=costumes)
    if object_type == ObjectType.PARK_ENTRANCE:
        scrolling_mode, text_height = struct.unpack_from("<6xBB", header)
        return ParkEntrancePayload(scrolling_mode=scrolling_mode, text_height=text_height)
    if object_type == ObjectType.WATER:
        (flags,) = struct.unpack_from("<14xH", header)
        return WaterPayload(flags=flags)
    return RawPayload(data=bytes(header))


def find_image_directory(data: bytes, start: int) -> int:
    """Return the offset of the image directory that ends exactly at the chunk end."""
    size = len(data)
    for pos in range(start, size - IMAGE_DIRECTORY_HEADER_SIZE + 1):
        count, data_size = struct.unpack_from("<II", data, pos)
        if count > MAX_IMAGE_COUNT:
            continue
        entries_end = pos + IMAGE_DIRECTORY_HEADER_SIZE + count * IMAGE_ENTRY_SIZE
        if entries_end + data_size != size:
            continue
        offsets_valid = all(
            struct.unpack_from("<I", data, pos + IMAGE_DIRECTORY_HEADER_SIZE + i * IMAGE_ENTRY_SIZE)[0]
            <= data_size
            for i in range(count)
        )
        if offsets_valid:
            return pos
    raise ObjectDataError("Image directory not found")


def decode_rle_sprite(graphics: bytes, offset: int, width: int, height: int) -> np.ndarray:
    pixels = np.zeros((height, width), dtype=np.uint8)
    for y in range(height):
        (row_offset,) = struct.unpack_from("<H", graphics, offset + y * 2)
        pos = offset + row_offset
        while True:
            run_header = graphics[pos]
            x = graphics[pos + 1]
            pos += 2
            length = run_header & 0x7F
            if x + length > width or pos + length > len(graphics):
                raise ObjectDataError(f"RLE sprite row {y} overflows ({x}+{length} > {width})")
            pixels[y, x:x + length] = np.frombuffer(graphics, dtype=np.uint8, count=length, offset=pos)
            pos += length
            if run_header & 0x80:
                break
    return pixels


def read_images(data: bytes, pos: int) -> Tuple[LegacyImage, ...]:
    count, data_size = struct.unpack_from("<II", data, pos)
    entries_start = pos + IMAGE_DIRECTORY_HEADER_SIZE
    graphics_start = entries_start + count * IMAGE_ENTRY_SIZE
    graphics = data[graphics_start:graphics_start + data_size]

    images: List[LegacyImage] = []
    for index in range(count):
        offset, width, height, x_offset, y_offset, flags, _zoomed = struct.unpack_from(
            "<IhhhhHH", data, entries_start + index * IMAGE_ENTRY_SIZE
        )
        width = max(0, width)
        height = max(0, height)
        if flags & IMAGE_FLAG_RLE:
            pixels = decode_rle_sprite(graphics, offset, width, height)
        elif flags & IMAGE_FLAG_BMP:
            needed = width * height
            if offset + needed > len(graphics):
                raise ObjectDataError(f"Bitmap image {index} truncated")
            pixels = np.frombuffer(graphics, dtype=np.uint8, count=needed, offset=offset).reshape(height, width)
        else:
            # palette entries and unknown kinds carry no drawable pixels
            width = height = 0
            pixels = np.zeros((0, 0), dtype=np.uint8)
        images.append(
            LegacyImage(
                width=width,
                height=height,
                x_offset=x_offset,
                y_offset=y_offset,
                flags=flags,
                pixels=pixels,
            )
        )
    return tuple(images)


def parse_object_data(raw: bytes) -> LegacyObject:
    """Decode a complete `.DAT` payload into a `LegacyObject`."""
    if len(raw) < OBJECT_HEADER_SIZE + CHUNK_HEADER_SIZE:
        raise ObjectDataError(f"File too small: {len(raw)} bytes")

    flags, name_raw, checksum = struct.unpack_from("<I8sI", raw, 0)
    encoding, chunk_length = struct.unpack_from("<BI", raw, OBJECT_HEADER_SIZE)
    chunk_start = OBJECT_HEADER_SIZE + CHUNK_HEADER_SIZE
    if chunk_start + chunk_length > len(raw):
        raise ObjectDataError(
            f"Chunk truncated (need {chunk_start + chunk_length}, have {len(raw)})"
        )

    object_type = ObjectType.from_flags(flags)
    source = SourceGame.from_flags(flags)
    file_name = name_raw.decode("ascii", errors="replace").rstrip(" \x00")

    try:
        data = decode_chunk(encoding, raw[chunk_start:chunk_start + chunk_length])

        header_size = FIXED_HEADER_SIZES[object_type]
        if len(data) < header_size:
            raise ObjectDataError(
                f"Chunk too small for {object_type.name} header ({len(data)} < {header_size})"
            )
        payload = decode_payload(object_type, data[:header_size])

        pos = header_size
        entries: List[StringEntry] = []
        for _ in range(STRING_TABLE_COUNTS.get(object_type, 1)):
            entry, pos = read_string_table(data, pos)
            entries.append(entry)

        images = read_images(data, find_image_directory(data, pos))
    except (struct.error, IndexError, ValueError) as exc:
        raise ObjectDataError(f"Malformed object data: {exc}") from exc

    logging.debug(
        "Read %s (%s, %s): %d string table(s), %d image(s)",
        file_name.upper(),
        object_type.name,
        source.name,
        len(entries),
        len(images),
    )
    return LegacyObject(
        source=source,
        object_type=object_type,
        file_name=file_name,
        checksum=checksum,
        flags=flags,
        string_table=StringTable(entries=entries),
        images=images,
        payload=payload,
    )


def read_object_file(path: Path) -> LegacyObject:
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise ObjectDataError(f"Cannot read {path}: {exc}") from exc
    return parse_object_data(raw)
