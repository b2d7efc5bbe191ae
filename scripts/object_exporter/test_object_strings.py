#!/usr/bin/env python3
import sys
import tempfile
import unittest
from pathlib import Path


SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

import object_strings as strings
from dat_fixtures import make_object
from object_data import ObjectType


class DecodeTests(unittest.TestCase):
    def test_single_byte_languages_use_legacy_code_page(self) -> None:
        self.assertEqual(strings.decode_legacy_text("fr-FR", b"Man\xe8ge"), "Manège")

    def test_multibyte_language_decodes_prefixed_pairs(self) -> None:
        raw = b"\xff" + "木".encode("cp932") + b"A"
        self.assertEqual(strings.decode_legacy_text("ja-JP", raw), "木A")

    def test_unknown_slot_uses_number(self) -> None:
        self.assertEqual(strings.language_code(12), "12")
        self.assertEqual(strings.language_code(13), "pt-BR")


class SelectStringsTests(unittest.TestCase):
    def test_filters_empty_and_not_translated(self) -> None:
        obj = make_object(strings=({0: b"Oak Tree", 1: b"   ", 2: b"#NOT TRANSLATED yet", 3: b"Eiche"},))
        self.assertEqual(
            strings.select_strings(obj, {}),
            {"name": {"en-GB": "Oak Tree", "de-DE": "Eiche"}},
        )

    def test_duplicates_of_primary_are_dropped(self) -> None:
        obj = make_object(strings=({0: b"Oak Tree", 1: b"Oak Tree ", 4: b"Roble"},))
        self.assertEqual(
            strings.select_strings(obj, {}),
            {"name": {"en-GB": "Oak Tree", "es-ES": "Roble"}},
        )

    def test_lowest_slot_is_primary_without_english(self) -> None:
        obj = make_object(strings=({1: b"Bench", 2: b"Bench", 3: b"Bank"},))
        self.assertEqual(
            strings.select_strings(obj, {}),
            {"name": {"en-US": "Bench", "de-DE": "Bank"}},
        )

    def test_ride_uses_three_fields_and_drops_empty(self) -> None:
        obj = make_object(
            object_type=ObjectType.RIDE,
            strings=({0: b"Coaster"}, {0: b""}, {0: b"4 riders"}),
        )
        self.assertEqual(
            strings.select_strings(obj, {}),
            {"name": {"en-GB": "Coaster"}, "capacity": {"en-GB": "4 riders"}},
        )

    def test_non_ride_ignores_extra_string_tables(self) -> None:
        obj = make_object(strings=({0: b"Bench"}, {0: b"Ignored"}))
        self.assertEqual(strings.select_strings(obj, {}), {"name": {"en-GB": "Bench"}})

    def test_overrides_win_and_legacy_fills_gaps(self) -> None:
        obj = make_object(
            object_type=ObjectType.RIDE,
            strings=({0: b"Coaster", 2: b"Montagnes"}, {0: b"Fast"}),
        )
        overrides = {"name": {"en-GB": "Wooden Coaster", "nl-NL": "Achtbaan"}}
        self.assertEqual(
            strings.select_strings(obj, overrides),
            {
                "name": {"en-GB": "Wooden Coaster", "fr-FR": "Montagnes", "nl-NL": "Achtbaan"},
                "description": {"en-GB": "Fast"},
            },
        )

    def test_override_fields_outside_whitelist_are_pruned(self) -> None:
        obj = make_object(strings=({0: b"Bench"},))
        overrides = {"description": {"en-GB": "A place to sit"}, "reference-name": {"en-GB": "x"}}
        self.assertEqual(strings.select_strings(obj, overrides), {"name": {"en-GB": "Bench"}})

    def test_empty_override_field_is_pruned(self) -> None:
        obj = make_object(strings=({0: b""},))
        self.assertEqual(strings.select_strings(obj, {"name": {}}), {})

    def test_overlay_is_idempotent_and_neutral_for_empty(self) -> None:
        obj = make_object(object_type=ObjectType.RIDE, strings=({0: b"Coaster"}, {0: b"Fast"}))
        legacy = strings.legacy_strings(obj)
        self.assertEqual(strings.overlay_strings({}, legacy), legacy)

        ours = {"name": {"de-DE": "Achterbahn"}, "capacity": {"en-GB": "2 riders"}}
        once = strings.overlay_strings(ours, legacy)
        twice = strings.overlay_strings(ours, once)
        self.assertEqual(once, twice)
        self.assertEqual(legacy, {"name": {"en-GB": "Coaster"}, "description": {"en-GB": "Fast"}})


class LanguageFileTests(unittest.TestCase):
    def test_loads_object_sections_per_language(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            (root / "en-GB.txt").write_text(
                "# comment\n"
                "STR_0001    :Not an object string\n"
                "\n"
                "[ADVENT1 ]\n"
                "STR_NAME    :Adventure Trail\n"
                "STR_DESC    :A guided walk: jungle edition\n"
                "STR_CPTY    :\n",
                encoding="utf-8",
            )
            (root / "de-DE.txt").write_text("[advent1]\nSTR_NAME :Abenteuerpfad\n", encoding="utf-8")

            loaded = strings.load_override_strings(root)

        self.assertEqual(
            loaded,
            {
                "ADVENT1": {
                    "name": {"de-DE": "Abenteuerpfad", "en-GB": "Adventure Trail"},
                    "description": {"en-GB": "A guided walk: jungle edition"},
                }
            },
        )

    def test_overrides_for_object_matches_file_name(self) -> None:
        obj = make_object(file_name="advent1")
        overrides = {"ADVENT1": {"name": {"en-GB": "Adventure Trail"}}}
        self.assertEqual(strings.overrides_for_object(overrides, obj), {"name": {"en-GB": "Adventure Trail"}})
        self.assertEqual(strings.overrides_for_object({}, obj), {})


if __name__ == "__main__":
    unittest.main()
