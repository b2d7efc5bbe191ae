#!/usr/bin/env python3
"""
object_images.py
================

Image selection and extraction for exported objects.

Footpath objects pack the images of three runtime objects into one image
list. The split exports pick them apart by position:

    surface     71, 0..50
    queue       72, 51..70
    railings    71, 73..164 / 73..145 / 73..167 (depends on support flags)

Extracted images are composed into an indexed `images.png` atlas and listed
in a manifest. Unless raw PNG output is requested, the manifest is handed
to the image compiler (`gxc build <blob> <manifest>`) and replaced by a
single `$LGX:` reference to the compiled blob.
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from PIL import Image

from object_data import (
    ExportVariant,
    FootpathPayload,
    LegacyObject,
    ObjectDataError,
    ObjectType,
)

IMAGE_ATLAS_FILENAME = "images.png"
IMAGE_MANIFEST_FILENAME = "images.json"
IMAGE_BLOB_FILENAME = "images.dat"
ATLAS_WIDTH = 1024
TRANSPARENT_INDEX = 0

FOOTPATH_SURFACE_PREVIEW = 71
FOOTPATH_QUEUE_PREVIEW = 72

ManifestEntry = Dict[str, object]
ImageList = Union[List[str], List[ManifestEntry]]
ImageCompiler = Callable[[Path, Path], None]


class ImageCompilerError(Exception):
    def __init__(self, message: str, missing: bool = False) -> None:
        super().__init__(message)
        self.missing = missing


# ---------------------------------------------------------------------------
# Slice planning
# ---------------------------------------------------------------------------

def railing_image_range(payload: FootpathPayload) -> range:
    if payload.has_pole_supports:
        if payload.has_support_images:
            return range(73, 165)
        return range(73, 146)
    return range(73, 168)


def plan_slices(obj: LegacyObject, variant: ExportVariant) -> List[int]:
    if variant == ExportVariant.NONE:
        return list(range(obj.image_count))

    payload = obj.payload
    if not isinstance(payload, FootpathPayload):
        raise ObjectDataError(f"{obj.file_name.upper()} is not a footpath; cannot export {variant.value}")

    if variant == ExportVariant.FOOTPATH_SURFACE:
        indices = [FOOTPATH_SURFACE_PREVIEW] + list(range(0, 51))
    elif variant == ExportVariant.FOOTPATH_QUEUE:
        indices = [FOOTPATH_QUEUE_PREVIEW] + list(range(51, 71))
    else:
        indices = [FOOTPATH_SURFACE_PREVIEW] + list(railing_image_range(payload))

    highest = max(indices)
    if highest >= obj.image_count:
        raise ObjectDataError(
            f"{obj.file_name.upper()} has {obj.image_count} image(s); "
            f"{variant.value} needs index {highest}"
        )
    return indices


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def default_palette() -> List[int]:
    return [level for index in range(256) for level in (index, index, index)]


def load_palette(path: Optional[Path]) -> List[int]:
    """Palette from a raw 768 byte file or from any paletted image Pillow can open."""
    if path is None:
        return default_palette()
    raw = path.read_bytes()
    if len(raw) == 768:
        return list(raw)
    with Image.open(path) as image:
        palette = image.getpalette()
    if not palette:
        raise ValueError(f"{path} has no palette")
    return (list(palette) + [0] * 768)[:768]


def pack_atlas(sizes: Sequence[Tuple[int, int]], max_width: int = ATLAS_WIDTH) -> Tuple[List[Tuple[int, int]], int, int]:
    """Shelf-pack (width, height) boxes; returns positions and the atlas size."""
    atlas_width = max([max_width] + [width for width, _ in sizes])
    positions: List[Tuple[int, int]] = []
    x = y = row_height = used_width = 0
    for width, height in sizes:
        if width <= 0 or height <= 0:
            positions.append((0, 0))
            continue
        if x + width > atlas_width:
            x = 0
            y += row_height
            row_height = 0
        positions.append((x, y))
        x += width
        used_width = max(used_width, x)
        row_height = max(row_height, height)
    return positions, max(1, used_width), max(1, y + row_height)


def export_images(
    obj: LegacyObject,
    indices: Sequence[int],
    output_dir: Path,
    palette: Optional[List[int]] = None,
) -> List[ManifestEntry]:
    images = [obj.images[index] for index in indices]
    if not images:
        return []
    positions, width, height = pack_atlas([(image.width, image.height) for image in images])

    canvas = np.full((height, width), TRANSPARENT_INDEX, dtype=np.uint8)
    manifest: List[ManifestEntry] = []
    for image, (src_x, src_y) in zip(images, positions):
        if not image.is_empty:
            canvas[src_y:src_y + image.height, src_x:src_x + image.width] = image.pixels
        manifest.append(
            {
                "path": IMAGE_ATLAS_FILENAME,
                "x": image.x_offset,
                "y": image.y_offset,
                "srcX": src_x,
                "srcY": src_y,
                "srcWidth": image.width,
                "srcHeight": image.height,
                "palette": "keep",
            }
        )

    atlas = Image.frombytes("P", (width, height), canvas.tobytes())
    atlas.putpalette(palette or default_palette())
    output_dir.mkdir(parents=True, exist_ok=True)
    atlas.save(output_dir / IMAGE_ATLAS_FILENAME, format="PNG", transparency=TRANSPARENT_INDEX)
    logging.debug("Extracted %d image(s) from %s into %s", len(images), obj.file_name.upper(), output_dir)
    return manifest


# ---------------------------------------------------------------------------
# Image compiler
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GxcCompiler:
    executable: str = "gxc"

    def __call__(self, blob_path: Path, manifest_path: Path) -> None:
        cmd = [self.executable, "build", str(blob_path), str(manifest_path)]
        logging.debug("Executing image compiler: %s", " ".join(cmd))
        try:
            completed = subprocess.run(cmd, check=False, capture_output=True, text=True)
        except FileNotFoundError as exc:
            raise ImageCompilerError(f"Unable to find {self.executable} on PATH", missing=True) from exc
        if completed.returncode != 0:
            raise ImageCompilerError(
                f"{self.executable} exited with code {completed.returncode}: {completed.stderr.strip()}"
            )


def build_image_blob(output_dir: Path, manifest: List[ManifestEntry], compiler: ImageCompiler) -> ImageList:
    if not manifest:
        return []

    blob_path = output_dir / IMAGE_BLOB_FILENAME
    manifest_path = output_dir / IMAGE_MANIFEST_FILENAME
    logging.debug("Building %s", IMAGE_BLOB_FILENAME)
    manifest_path.write_text(json.dumps(manifest, indent=4) + "\n", encoding="utf-8")

    try:
        compiler(blob_path, manifest_path)
    except ImageCompilerError as exc:
        if exc.missing:
            logging.warning("%s (pass --png to skip gxc)", exc)
        else:
            logging.warning("Image compilation failed in %s: %s (pass --png to skip gxc)", output_dir, exc)
        return manifest

    manifest_path.unlink()
    (output_dir / IMAGE_ATLAS_FILENAME).unlink(missing_ok=True)
    return [f"$LGX:{IMAGE_BLOB_FILENAME}[0..{len(manifest) - 1}]"]


def legacy_image_reference(obj: LegacyObject, input_path: Path) -> Optional[List[str]]:
    if obj.object_type == ObjectType.WATER:
        return None
    if obj.image_count == 0:
        return []
    file_name = input_path.stem.upper()
    return [f"$RCT2:OBJDATA/{file_name}.DAT[0..{obj.image_count - 1}]"]
