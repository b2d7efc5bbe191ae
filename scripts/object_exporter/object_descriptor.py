#!/usr/bin/env python3
"""
object_descriptor.py
====================

The exported `object.json` record and its on-disk form.

Descriptors are written as UTF-8 without a byte-order mark, indented with
four spaces, `\\n` line endings and one trailing newline. Keys are emitted in
a fixed order:

    id, authors, version, originalId, objectType, properties, images, strings

`originalId` is left out entirely when the descriptor has none.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from object_data import ExportVariant, LegacyObject
from object_ids import default_authors, original_id

DESCRIPTOR_VERSION = "1.0"
DESCRIPTOR_FILENAME = "object.json"
PARKOBJ_SUFFIX = ".parkobj"


@dataclass
class Descriptor:
    id: str
    authors: List[str]
    object_type: str
    properties: Dict[str, object]
    images: Optional[List[Union[str, Dict[str, object]]]]
    strings: Dict[str, Dict[str, str]]
    original_id: Optional[str] = None
    version: str = DESCRIPTOR_VERSION

    def to_json_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "id": self.id,
            "authors": list(self.authors),
            "version": self.version,
        }
        if self.original_id is not None:
            payload["originalId"] = self.original_id
        payload["objectType"] = self.object_type
        payload["properties"] = self.properties
        payload["images"] = self.images
        payload["strings"] = {name: values for name, values in self.strings.items() if values}
        return payload

    @classmethod
    def from_json_dict(cls, payload: Dict[str, object]) -> "Descriptor":
        return cls(
            id=payload["id"],
            authors=list(payload.get("authors") or []),
            version=payload.get("version", DESCRIPTOR_VERSION),
            original_id=payload.get("originalId"),
            object_type=payload["objectType"],
            properties=payload.get("properties") or {},
            images=payload.get("images"),
            strings=payload.get("strings") or {},
        )


def assemble(
    object_id: str,
    obj: LegacyObject,
    variant: ExportVariant,
    object_type: str,
    properties: Dict[str, object],
    images: Optional[List[Union[str, Dict[str, object]]]],
    strings: Dict[str, Dict[str, str]],
    authors: Optional[Sequence[str]] = None,
) -> Descriptor:
    return Descriptor(
        id=object_id,
        authors=list(authors) if authors else default_authors(obj.source),
        original_id=original_id(obj) if variant == ExportVariant.NONE else None,
        object_type=object_type,
        properties=properties,
        images=images,
        strings={name: values for name, values in strings.items() if values},
    )


def serialize_descriptor(descriptor: Descriptor) -> str:
    return json.dumps(descriptor.to_json_dict(), indent=4, ensure_ascii=False) + "\n"


def parse_descriptor(text: str) -> Descriptor:
    return Descriptor.from_json_dict(json.loads(text))


def write_text_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise


def write_descriptor(path: Path, descriptor: Descriptor) -> None:
    write_text_atomic(path, serialize_descriptor(descriptor))


def read_descriptor(path: Path) -> Descriptor:
    return parse_descriptor(path.read_text(encoding="utf-8"))


def package_parkobj(directory: Path) -> Path:
    """Zip *directory* into a sibling `.parkobj` archive and remove the directory."""
    archive_path = directory.with_name(directory.name + PARKOBJ_SUFFIX)
    if archive_path.exists():
        archive_path.unlink()
    with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for path in sorted(directory.rglob("*")):
            if path.is_file():
                archive.write(path, path.relative_to(directory).as_posix())
    shutil.rmtree(directory)
    logging.debug("Packaged %s", archive_path)
    return archive_path
