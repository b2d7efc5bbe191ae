#!/usr/bin/env python3
import json
import sys
import tempfile
import unittest
import zipfile
from pathlib import Path


SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

import object_descriptor as descriptors
from dat_fixtures import make_footpath, make_object
from object_data import ExportVariant, SourceGame


def sample_descriptor(**overrides) -> descriptors.Descriptor:
    values = dict(
        id="rct2.tree1",
        authors=["Chris Sawyer", "Simon Foster"],
        object_type="scenery_small",
        properties={"price": 12},
        images=["$RCT2:OBJDATA/TREE1.DAT[0..3]"],
        strings={"name": {"en-GB": "Tree", "fr-FR": "Arbre"}},
        original_id="00000081|TREE1   |CAFEBABE",
    )
    values.update(overrides)
    return descriptors.Descriptor(**values)


class SerializeTests(unittest.TestCase):
    def test_key_order_and_layout(self) -> None:
        text = descriptors.serialize_descriptor(sample_descriptor())
        self.assertEqual(
            list(json.loads(text)),
            ["id", "authors", "version", "originalId", "objectType", "properties", "images", "strings"],
        )
        self.assertTrue(text.endswith("}\n"))
        self.assertFalse(text.endswith("\n\n"))
        self.assertIn('\n    "id": "rct2.tree1",', text)

    def test_original_id_is_omitted_when_absent(self) -> None:
        text = descriptors.serialize_descriptor(sample_descriptor(original_id=None))
        self.assertNotIn("originalId", json.loads(text))

    def test_null_images_are_kept(self) -> None:
        payload = json.loads(descriptors.serialize_descriptor(sample_descriptor(images=None)))
        self.assertIn("images", payload)
        self.assertIsNone(payload["images"])

    def test_non_ascii_strings_are_written_verbatim(self) -> None:
        text = descriptors.serialize_descriptor(sample_descriptor(strings={"name": {"fr-FR": "Manège"}}))
        self.assertIn("Manège", text)

    def test_parse_reverses_serialize(self) -> None:
        for original in (sample_descriptor(), sample_descriptor(original_id=None, images=None)):
            self.assertEqual(descriptors.parse_descriptor(descriptors.serialize_descriptor(original)), original)


class AssembleTests(unittest.TestCase):
    def test_unsplit_object_carries_original_id_and_default_authors(self) -> None:
        obj = make_object(source=SourceGame.WACKY_WORLDS)
        descriptor = descriptors.assemble("rct2.ww.tree1", obj, ExportVariant.NONE, "scenery_small", {}, [], {})
        self.assertEqual(descriptor.original_id, "00000011|TREE1   |CAFEBABE")
        self.assertEqual(descriptor.authors, ["Frontier Studios"])
        self.assertEqual(descriptor.version, "1.0")

    def test_split_variant_has_no_original_id(self) -> None:
        descriptor = descriptors.assemble(
            "rct2.footpath_railings.tarmac",
            make_footpath(),
            ExportVariant.FOOTPATH_RAILINGS,
            "footpath_railings",
            {},
            [],
            {"name": {"en-GB": "Tarmac"}, "description": {}},
        )
        self.assertIsNone(descriptor.original_id)
        self.assertEqual(descriptor.strings, {"name": {"en-GB": "Tarmac"}})

    def test_explicit_authors_replace_defaults(self) -> None:
        descriptor = descriptors.assemble(
            "my.tree", make_object(), ExportVariant.NONE, "scenery_small", {}, [], {}, authors=("Jane",)
        )
        self.assertEqual(descriptor.authors, ["Jane"])


class WriteTests(unittest.TestCase):
    def test_write_creates_parents_without_bom(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "rct2" / "scenery_small" / "rct2.tree1.json"
            descriptors.write_descriptor(path, sample_descriptor())
            raw = path.read_bytes()
            self.assertFalse(raw.startswith(b"\xef\xbb\xbf"))
            self.assertNotIn(b"\r\n", raw)
            self.assertEqual(descriptors.read_descriptor(path), sample_descriptor())
            self.assertEqual([p.name for p in path.parent.iterdir()], ["rct2.tree1.json"])

    def test_write_replaces_existing_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "object.json"
            path.write_text("old", encoding="utf-8")
            descriptors.write_descriptor(path, sample_descriptor(id="rct2.tree2"))
            self.assertEqual(descriptors.read_descriptor(path).id, "rct2.tree2")


class ParkobjTests(unittest.TestCase):
    def test_package_zips_and_removes_directory(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            object_dir = Path(temp_dir) / "rct2.tree1"
            object_dir.mkdir()
            (object_dir / "object.json").write_text("{}\n", encoding="utf-8")
            (object_dir / "images.dat").write_bytes(b"blob")

            archive_path = descriptors.package_parkobj(object_dir)

            self.assertEqual(archive_path, Path(temp_dir) / "rct2.tree1.parkobj")
            self.assertFalse(object_dir.exists())
            with zipfile.ZipFile(archive_path) as archive:
                self.assertEqual(sorted(archive.namelist()), ["images.dat", "object.json"])
                self.assertEqual(archive.read("images.dat"), b"blob")

    def test_package_replaces_existing_archive(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            object_dir = Path(temp_dir) / "rct2.tree1"
            object_dir.mkdir()
            (object_dir / "object.json").write_text("{}\n", encoding="utf-8")
            (Path(temp_dir) / "rct2.tree1.parkobj").write_bytes(b"stale")

            archive_path = descriptors.package_parkobj(object_dir)

            with zipfile.ZipFile(archive_path) as archive:
                self.assertEqual(archive.namelist(), ["object.json"])


if __name__ == "__main__":
    unittest.main()
