#!/usr/bin/env python3
import sys
import unittest
from pathlib import Path


SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

import footpath_split
import object_ids as ids
from dat_fixtures import make_footpath, make_object
from object_data import ExportVariant, ObjectType, SourceGame


class BuildIdTests(unittest.TestCase):
    def test_empty_segments_are_skipped(self) -> None:
        self.assertEqual(ids.build_id("rct2", "", "tarmac", ""), "rct2.tarmac")
        self.assertEqual(ids.build_id("rct2", "footpath_surface", "tarmac", "queue"), "rct2.footpath_surface.tarmac.queue")

    def test_source_tags_per_provenance(self) -> None:
        expected = {
            SourceGame.RCT2: "rct2.tree1",
            SourceGame.WACKY_WORLDS: "rct2.ww.tree1",
            SourceGame.TIME_TWISTER: "rct2.tt.tree1",
            SourceGame.OPENRCT2: "other.tree1",
            SourceGame.CUSTOM: "other.tree1",
        }
        for source, object_id in expected.items():
            obj = make_object(file_name="TREE1", source=source)
            self.assertEqual(ids.object_id(obj), object_id)
            self.assertEqual(ids.object_id(obj), ids.object_id(obj))

    def test_unlisted_sources_share_other_directory(self) -> None:
        self.assertEqual(ids.source_directory_name(SourceGame.WACKY_WORLDS), "rct2ww")
        for source in (SourceGame.OPENRCT2, SourceGame.CUSTOM, SourceGame.OTHER):
            self.assertEqual(ids.source_directory_name(source), "other")

    def test_original_id_pads_name(self) -> None:
        obj = make_object(file_name="TREE1", checksum=0xCAFEBABE)
        self.assertEqual(ids.original_id(obj), "00000081|TREE1   |CAFEBABE")

    def test_default_authors(self) -> None:
        self.assertEqual(ids.default_authors(SourceGame.RCT2), ["Chris Sawyer", "Simon Foster"])
        self.assertEqual(ids.default_authors(SourceGame.TIME_TWISTER), ["Frontier Studios"])
        self.assertEqual(ids.default_authors(SourceGame.CUSTOM), [])

    def test_every_type_has_a_name(self) -> None:
        for object_type in ObjectType:
            self.assertTrue(ids.object_type_name(object_type))
        self.assertEqual(ids.object_type_name(ObjectType.WALL), "scenery_wall")


class FootpathSplitTests(unittest.TestCase):
    def test_split_footpath_yields_three_distinct_ids(self) -> None:
        plan = footpath_split.split(make_footpath(), split_footpaths=True)
        self.assertEqual(
            plan,
            [
                (ExportVariant.FOOTPATH_SURFACE, "rct2.footpath_surface.tarmac"),
                (ExportVariant.FOOTPATH_QUEUE, "rct2.footpath_surface.tarmac.queue"),
                (ExportVariant.FOOTPATH_RAILINGS, "rct2.footpath_railings.tarmac"),
            ],
        )
        self.assertEqual(len({object_id for _, object_id in plan}), 3)

    def test_override_id_gets_suffixes(self) -> None:
        plan = footpath_split.split(make_footpath(), "my.path", split_footpaths=True)
        self.assertEqual([object_id for _, object_id in plan], ["my.path.surface", "my.path.queue", "my.path.railings"])

    def test_footpath_without_split_mode_is_exported_once(self) -> None:
        plan = footpath_split.split(make_footpath(), split_footpaths=False)
        self.assertEqual(plan, [(ExportVariant.NONE, "rct2.tarmac")])

    def test_non_footpath_is_never_split(self) -> None:
        plan = footpath_split.split(make_object(), "custom.tree", split_footpaths=True)
        self.assertEqual(plan, [(ExportVariant.NONE, "custom.tree")])

    def test_variant_object_types(self) -> None:
        obj = make_footpath()
        self.assertEqual(footpath_split.variant_object_type(obj, ExportVariant.FOOTPATH_SURFACE), "footpath_surface")
        self.assertEqual(footpath_split.variant_object_type(obj, ExportVariant.FOOTPATH_QUEUE), "footpath_surface")
        self.assertEqual(footpath_split.variant_object_type(obj, ExportVariant.FOOTPATH_RAILINGS), "footpath_railings")
        self.assertEqual(footpath_split.variant_object_type(obj, ExportVariant.NONE), "footpath")


if __name__ == "__main__":
    unittest.main()
