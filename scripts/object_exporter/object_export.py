#!/usr/bin/env python3
"""
object_export.py
================

Export RCT2 objects (`.DAT`) to OpenRCT2 object descriptors.

Two modes, chosen by the input path:

* A single `.DAT` file is exported as a park object: `<output>/<id>/object.json`
  with its images extracted next to it (compiled to `images.dat` by `gxc`
  unless `--png` is given). Footpaths can be split into surface, queue and
  railings objects with `--split-footpaths`, and `--parkobj` zips each
  object directory into `<output>/<id>.parkobj`.
* A directory is exported as a whole: every `*.dat` becomes
  `<output>/<source>/<type>/<id>.json` referencing the images of the
  original file (`$RCT2:OBJDATA/<NAME>.DAT[0..n]`). Files that cannot be read
  are reported and skipped.

Example usage:

    python object_export.py ObjData/TARMAC.DAT out --split-footpaths --parkobj
    python object_export.py ObjData out --language-dir localisation --workers 8
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import pickle
import sys
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field, fields as dataclass_fields
from functools import partial
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from dat_reader import read_object_file
from footpath_split import split, variant_object_type
from object_data import ExportVariant, LegacyObject, ObjectDataError, ObjectType
from object_descriptor import DESCRIPTOR_FILENAME, assemble, package_parkobj, write_descriptor
from object_ids import object_id, object_type_name, source_directory_name
from object_images import (
    GxcCompiler,
    ImageCompiler,
    build_image_blob,
    export_images,
    legacy_image_reference,
    load_palette,
    plan_slices,
)
from object_properties import footpath_split_properties, object_properties
from object_strings import (
    OverrideStrings,
    StringMap,
    load_override_strings,
    overrides_for_object,
    select_strings,
)

OBJECT_FILE_EXTENSION = ".dat"

Reader = Callable[[Path], LegacyObject]


@dataclass(frozen=True)
class ExportOptions:
    object_id: Optional[str] = None
    authors: Tuple[str, ...] = ()
    language_dir: Optional[Path] = None
    object_type: Optional[str] = None
    workers: int = 1
    split_footpaths: bool = False
    store_png: bool = False
    output_parkobj: bool = False
    gxc: str = "gxc"
    report_path: Optional[Path] = None


@dataclass
class ExportStats:
    exported: int = 0
    skipped: int = 0
    unreadable: int = 0
    failed: int = 0
    failures: List[str] = field(default_factory=list)


def merge_stats(target: ExportStats, source: ExportStats) -> None:
    """Merge *source* into *target* by summing int fields and extending list fields."""
    for f in dataclass_fields(ExportStats):
        src_val = getattr(source, f.name)
        if isinstance(src_val, int):
            setattr(target, f.name, getattr(target, f.name) + src_val)
        elif isinstance(src_val, list):
            getattr(target, f.name).extend(src_val)


def create_directory(path: Path) -> bool:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logging.error("Unable to create '%s': %s", path, exc)
        return False
    return True


# ---------------------------------------------------------------------------
# Single object (park object) export
# ---------------------------------------------------------------------------

def export_sub_object(
    output_root: Path,
    obj: LegacyObject,
    variant: ExportVariant,
    sub_id: str,
    strings: StringMap,
    options: ExportOptions,
    compiler: ImageCompiler,
    palette: Optional[List[int]],
) -> Optional[Path]:
    object_dir = output_root / sub_id
    json_path = object_dir / DESCRIPTOR_FILENAME
    logging.debug("Exporting %s to %s", obj.file_name.upper(), json_path.resolve())

    if not create_directory(object_dir):
        return None

    manifest = export_images(obj, plan_slices(obj, variant), object_dir, palette)
    if options.store_png:
        images = manifest
    else:
        images = build_image_blob(object_dir, manifest, compiler)

    if variant == ExportVariant.NONE:
        properties = object_properties(obj)
    else:
        properties = footpath_split_properties(obj.payload, variant)

    descriptor = assemble(
        sub_id,
        obj,
        variant,
        variant_object_type(obj, variant),
        properties,
        images,
        strings,
        options.authors,
    )
    write_descriptor(json_path, descriptor)

    if options.output_parkobj:
        return package_parkobj(object_dir)
    return json_path


def export_park_object(
    output_root: Path,
    overrides: StringMap,
    obj: LegacyObject,
    options: ExportOptions,
    compiler: Optional[ImageCompiler] = None,
    palette: Optional[List[int]] = None,
) -> List[Path]:
    compiler = compiler or GxcCompiler(options.gxc)
    strings = select_strings(obj, overrides)
    written: List[Path] = []
    for variant, sub_id in split(obj, options.object_id, options.split_footpaths):
        path = export_sub_object(output_root, obj, variant, sub_id, strings, options, compiler, palette)
        if path is not None:
            written.append(path)
    return written


# ---------------------------------------------------------------------------
# Directory export
# ---------------------------------------------------------------------------

def directory_output_path(output_root: Path, obj: LegacyObject) -> Path:
    return (
        output_root
        / source_directory_name(obj.source)
        / object_type_name(obj.object_type)
        / f"{object_id(obj)}.json"
    )


def export_object(output_root: Path, overrides: StringMap, input_path: Path, obj: LegacyObject) -> Path:
    json_path = directory_output_path(output_root, obj)
    logging.debug("Exporting %s to %s", obj.file_name.upper(), json_path.resolve())

    descriptor = assemble(
        object_id(obj),
        obj,
        ExportVariant.NONE,
        object_type_name(obj.object_type),
        object_properties(obj),
        legacy_image_reference(obj, input_path),
        select_strings(obj, overrides),
    )
    write_descriptor(json_path, descriptor)
    return json_path


def should_process(obj: LegacyObject, type_filter: Optional[str]) -> bool:
    if obj.object_type == ObjectType.SCENARIO_TEXT:
        return False
    return type_filter is None or object_type_name(obj.object_type) == type_filter


def discover_object_files(directory: Path) -> List[Path]:
    return sorted(
        path
        for path in directory.iterdir()
        if path.is_file() and path.suffix.lower() == OBJECT_FILE_EXTENSION
    )


def _export_worker(
    path: Path,
    output_root: Path,
    overrides: Mapping[str, StringMap],
    type_filter: Optional[str],
    reader: Reader,
) -> ExportStats:
    """Worker function for directory export. Returns local stats."""
    stats = ExportStats()
    try:
        obj = reader(path)
    except Exception as exc:  # noqa: BLE001
        stats.unreadable += 1
        stats.failures.append(f"{path}: {exc}")
        logging.error("Unable to read object data for %s: %s", path, exc)
        return stats

    if not should_process(obj, type_filter):
        stats.skipped += 1
        logging.debug("Skipping %s (%s)", obj.file_name.upper(), obj.object_type.name)
        return stats

    try:
        export_object(output_root, overrides_for_object(overrides, obj), path, obj)
    except Exception as exc:  # noqa: BLE001
        stats.failed += 1
        stats.failures.append(f"{path}: {exc}")
        logging.error("Failed to export %s: %s", obj.file_name.upper(), exc)
        return stats

    stats.exported += 1
    return stats


def is_picklable(value: object) -> bool:
    try:
        pickle.dumps(value)
    except (pickle.PicklingError, AttributeError, TypeError):
        return False
    return True


def write_report(report_path: Path, input_path: Path, output_root: Path, stats: ExportStats, elapsed: float) -> None:
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report = {
        "input": str(input_path),
        "output_root": str(output_root),
        "elapsed_seconds": round(elapsed, 3),
        "exported": stats.exported,
        "skipped": stats.skipped,
        "unreadable": stats.unreadable,
        "failed": stats.failed,
        "failures": stats.failures,
    }
    report_path.write_text(json.dumps(report, indent=2) + "\n", encoding="utf-8")
    logging.info("Report written to %s", report_path)


def export_all_objects(
    input_dir: Path,
    output_root: Path,
    overrides: OverrideStrings,
    options: ExportOptions,
    reader: Reader,
) -> Tuple[int, ExportStats]:
    """Export every `*.dat` in *input_dir*; returns (exit code, merged stats).

    With more than one worker the reader is shipped to worker processes, so
    it has to be picklable (a module-level function). Other readers run
    in-process.
    """
    stats = ExportStats()
    if not create_directory(output_root):
        return 1, stats

    logging.info("Exporting objects from '%s' to '%s'", input_dir, output_root)
    paths = discover_object_files(input_dir)
    workers = max(1, options.workers)
    if workers > 1 and not is_picklable(reader):
        logging.warning("Reader %r cannot be sent to worker processes; exporting in-process", reader)
        workers = 1
    start_time = time.time()

    worker_fn = partial(
        _export_worker,
        output_root=output_root,
        overrides=overrides,
        type_filter=options.object_type,
        reader=reader,
    )
    if workers <= 1:
        for path in paths:
            merge_stats(stats, worker_fn(path))
    else:
        chunksize = max(1, len(paths) // (workers * 4))
        with ProcessPoolExecutor(max_workers=workers) as executor:
            for worker_stats in executor.map(worker_fn, paths, chunksize=chunksize):
                merge_stats(stats, worker_stats)

    elapsed = time.time() - start_time
    logging.info("%d objects exported in %.1fs", stats.exported, elapsed)
    if stats.unreadable or stats.failed:
        logging.warning(
            "%d file(s) could not be read, %d object(s) failed to export",
            stats.unreadable,
            stats.failed,
        )
    if options.report_path:
        write_report(options.report_path, input_dir, output_root, stats, elapsed)
    return 0, stats


def export_single_object(
    input_path: Path,
    output_root: Path,
    overrides: OverrideStrings,
    options: ExportOptions,
    reader: Reader,
    compiler: Optional[ImageCompiler],
    palette: Optional[List[int]],
) -> int:
    if not create_directory(output_root):
        return 1

    logging.info("Exporting object from '%s' to '%s'", input_path, output_root)
    start_time = time.time()
    try:
        obj = reader(input_path)
        export_park_object(
            output_root,
            overrides_for_object(overrides, obj),
            obj,
            options,
            compiler=compiler,
            palette=palette,
        )
    except ObjectDataError as exc:
        logging.error("Unable to export %s: %s", input_path, exc)
        return 1
    logging.info("Object exported in %.1fs", time.time() - start_time)
    return 0


def export_objects(
    input_path: Path,
    output_root: Path,
    options: ExportOptions,
    reader: Reader = read_object_file,
    compiler: Optional[ImageCompiler] = None,
    palette: Optional[List[int]] = None,
) -> int:
    """Export a single object file or a directory of them; returns the exit code."""
    overrides: OverrideStrings = {}
    if options.language_dir is not None:
        logging.info("Reading object strings from '%s'", options.language_dir)
        overrides = load_override_strings(options.language_dir)

    if input_path.is_dir():
        exit_code, _ = export_all_objects(input_path, output_root, overrides, options, reader)
        return exit_code
    if input_path.is_file():
        return export_single_object(input_path, output_root, overrides, options, reader, compiler, palette)

    logging.error("'%s' does not exist", input_path)
    return 1


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Export RCT2 object files (.DAT) to OpenRCT2 object descriptors."
    )
    parser.add_argument("input", type=Path, help="A .DAT object file or a directory of them.")
    parser.add_argument("output", type=Path, help="Directory where descriptors are written.")
    parser.add_argument(
        "--id",
        dest="object_id",
        help="Explicit identifier for a single exported object (split footpaths append "
        ".surface, .queue and .railings).",
    )
    parser.add_argument(
        "--author",
        action="append",
        default=[],
        help="Author written to a single exported object. Can be supplied multiple times.",
    )
    parser.add_argument(
        "--language-dir",
        type=Path,
        help="Directory of <language>.txt files with replacement object strings.",
    )
    parser.add_argument(
        "--type",
        dest="object_type",
        help="Only export objects of this type when exporting a directory (e.g. ride, footpath).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=os.cpu_count() or 4,
        help="Number of parallel worker processes for directory export (default: number of CPUs).",
    )
    parser.add_argument(
        "--split-footpaths",
        action="store_true",
        help="Export footpaths as separate surface, queue and railings objects.",
    )
    parser.add_argument(
        "--png",
        action="store_true",
        help="Keep extracted images as PNG instead of compiling them with gxc.",
    )
    parser.add_argument(
        "--parkobj",
        action="store_true",
        help="Package each exported object directory into a .parkobj archive.",
    )
    parser.add_argument(
        "--palette",
        type=Path,
        help="Palette used for extracted images (raw 768 byte file or paletted image).",
    )
    parser.add_argument(
        "--gxc",
        default="gxc",
        help="Image compiler executable (default: %(default)s).",
    )
    parser.add_argument(
        "--report",
        type=Path,
        help="Optional path to store a JSON summary of a directory export.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        palette = load_palette(args.palette)
    except (OSError, ValueError) as exc:
        logging.error("Invalid --palette: %s", exc)
        return 1

    options = ExportOptions(
        object_id=args.object_id,
        authors=tuple(args.author),
        language_dir=args.language_dir,
        object_type=args.object_type,
        workers=args.workers,
        split_footpaths=args.split_footpaths,
        store_png=args.png,
        output_parkobj=args.parkobj,
        gxc=args.gxc,
        report_path=args.report,
    )
    return export_objects(args.input, args.output, options, palette=palette)


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
