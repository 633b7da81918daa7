"""
Unit tests for palette tables and the palette registry.
Run from project root: python -m pytest tests/ -v
"""
import sys
import unittest
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from palette_manager import (Colour, ControlPoint, PaletteBuildError, PaletteRegistry,  # noqa: E402
                             PaletteTable, PaletteType, TABLE_SIZE)
import palette_data  # noqa: E402

RED = Colour(1.0, 0.0, 0.0)
BLUE = Colour(0.0, 0.0, 1.0)


class TestPaletteType(unittest.TestCase):
    """Boundary conversions for persisted palette ids."""

    def test_from_name_round_trip(self):
        for palette in PaletteType:
            self.assertIs(PaletteType.from_name(palette.value), palette)
            self.assertIs(PaletteType.from_name(palette.name), palette)

    def test_from_name_ignores_case_and_whitespace(self):
        self.assertIs(PaletteType.from_name("  Viridis "), PaletteType.VIRIDIS)

    def test_from_name_unknown(self):
        with self.assertRaises(ValueError):
            PaletteType.from_name("ironbow")

    def test_index_round_trip(self):
        for palette in PaletteType:
            self.assertIs(PaletteType.from_index(palette.index), palette)
        self.assertEqual(PaletteType.INFERNO.index, 0)
        self.assertEqual(PaletteType.JET.index, 4)

    def test_from_index_out_of_range(self):
        for bad in (-1, 5, True, "1"):
            with self.assertRaises(ValueError):
                PaletteType.from_index(bad)


class TestPaletteTableBuild(unittest.TestCase):
    """Ramp validation and table construction."""

    def test_empty_ramp(self):
        with self.assertRaises(PaletteBuildError):
            PaletteTable.build([])

    def test_unsorted_ramp(self):
        with self.assertRaises(PaletteBuildError):
            PaletteTable.build([ControlPoint(0.8, RED), ControlPoint(0.2, BLUE)])

    def test_position_out_of_range(self):
        with self.assertRaises(PaletteBuildError):
            PaletteTable.build([ControlPoint(1.5, RED)])

    def test_channel_out_of_range(self):
        with self.assertRaises(PaletteBuildError):
            PaletteTable.build([ControlPoint(1.0, Colour(1.2, 0.0, 0.0))])

    def test_translucent_colour_rejected(self):
        with self.assertRaises(PaletteBuildError):
            PaletteTable.build([ControlPoint(1.0, Colour(1.0, 0.0, 0.0, 0.5))])

    def test_build_error_is_value_error(self):
        self.assertTrue(issubclass(PaletteBuildError, ValueError))

    def test_piecewise_constant(self):
        table = PaletteTable.build([ControlPoint(0.5, RED), ControlPoint(1.0, BLUE)])
        self.assertEqual(len(table), TABLE_SIZE)
        self.assertEqual(table[0], RED)
        self.assertEqual(table[127], RED)
        self.assertEqual(table[128], BLUE)
        self.assertEqual(table[255], BLUE)

    def test_single_point(self):
        table = PaletteTable.build([ControlPoint(0.3, RED)])
        self.assertTrue(all(entry == RED for entry in table.entries))

    def test_interpolated(self):
        black = Colour(0.0, 0.0, 0.0)
        white = Colour(1.0, 1.0, 1.0)
        table = PaletteTable.build([ControlPoint(0.0, black), ControlPoint(1.0, white)], interpolate=True)
        for k in (0, 64, 200, 255):
            self.assertAlmostEqual(table[k].r, (k + 0.5) / TABLE_SIZE)
            self.assertEqual(table[k].a, 1.0)

    def test_from_ramp_length_mismatch(self):
        with self.assertRaises(PaletteBuildError):
            PaletteTable.from_ramp([(0.0, 0.0, 0.0)], positions=[0.5, 1.0])

    def test_from_ramp_evenly_spaced(self):
        table = PaletteTable.from_ramp([(1.0, 0.0, 0.0), (0.0, 0.0, 1.0)])
        self.assertEqual(table[127], RED)
        self.assertEqual(table[128], BLUE)

    def test_wrong_shape(self):
        with self.assertRaises(PaletteBuildError):
            PaletteTable(np.zeros((10, 4)))

    def test_colours_read_only(self):
        table = PaletteTable.from_ramp([(1.0, 0.0, 0.0)])
        with self.assertRaises(ValueError):
            table.colours[0, 0] = 0.5


class TestPaletteTableLookup(unittest.TestCase):
    """Bucket boundaries and clamping on a table with distinct entries."""

    @classmethod
    def setUpClass(cls):
        ramp = [(k / 255.0, 0.0, 1.0 - k / 255.0) for k in range(TABLE_SIZE)]
        cls.table = PaletteTable.from_ramp(ramp, positions=palette_data.RAMP_POSITIONS)

    def test_entries_distinct(self):
        self.assertEqual(len(set(self.table.entries)), TABLE_SIZE)

    def test_ends(self):
        self.assertEqual(self.table.lookup(0.0), self.table[0])
        self.assertEqual(self.table.lookup(1.0), self.table[255])

    def test_clamping(self):
        self.assertEqual(self.table.lookup(-1.0), self.table[0])
        self.assertEqual(self.table.lookup(2.0), self.table[255])
        self.assertEqual(self.table.lookup(float('inf')), self.table[255])
        self.assertEqual(self.table.lookup(float('-inf')), self.table[0])
        self.assertEqual(self.table.lookup(float('nan')), self.table[0])

    def test_upper_threshold_is_inclusive(self):
        # Value k/256 is the top of bucket k-1
        for k in range(1, TABLE_SIZE):
            self.assertEqual(self.table.lookup(k / 256.0), self.table[k - 1])

    def test_bucket_interior(self):
        for k in range(TABLE_SIZE):
            self.assertEqual(self.table.lookup((k + 0.5) / 256.0), self.table[k])

    def test_just_below_one(self):
        self.assertEqual(self.table.lookup(np.nextafter(1.0, 0.0)), self.table[255])

    def test_lookup_array_matches_lookup(self):
        values = np.array([-0.5, 0.0, 0.001, 0.5, 0.5 + 1e-9, 0.75, 0.999, 1.0, 3.0, np.nan])
        result = self.table.lookup_array(values)
        self.assertEqual(result.shape, (len(values), 4))
        for value, row in zip(values, result):
            self.assertEqual(tuple(row), tuple(self.table.lookup(float(value))))

    def test_lookup_array_keeps_shape(self):
        self.assertEqual(self.table.lookup_array(np.zeros((3, 5))).shape, (3, 5, 4))

    def test_bgr_lut(self):
        lut = self.table.to_bgr_lut()
        self.assertEqual(lut.shape, (256, 1, 3))
        self.assertEqual(lut.dtype, np.uint8)
        self.assertEqual(tuple(lut[0, 0]), self.table.lookup(0.0).to_bgr8())
        self.assertEqual(tuple(lut[255, 0]), self.table.lookup(1.0).to_bgr8())


class TestPaletteRegistry(unittest.TestCase):
    """Built-in palettes."""

    @classmethod
    def setUpClass(cls):
        cls.registry = PaletteRegistry()

    def test_every_palette_has_a_table(self):
        self.assertEqual(self.registry.palettes(), list(PaletteType))
        for palette in PaletteType:
            self.assertIn(palette, self.registry)
            table = self.registry.table_for(palette)
            self.assertEqual(len(table.entries), TABLE_SIZE)
            self.assertEqual(table.name, palette.value)

    def test_table_is_shared(self):
        self.assertIs(self.registry.table_for(PaletteType.MAGMA),
                      self.registry.table_for(PaletteType.MAGMA))

    def test_fully_opaque_and_in_range(self):
        for palette in self.registry:
            colours = self.registry.table_for(palette).colours
            self.assertTrue(np.all(colours[:, 3] == 1.0))
            self.assertGreaterEqual(colours.min(), 0.0)
            self.assertLessEqual(colours.max(), 1.0)

    def test_table_entries_follow_ramp(self):
        table = self.registry.table_for(PaletteType.PLASMA)
        for k in (0, 1, 100, 254, 255):
            self.assertEqual(tuple(table[k])[:3], palette_data.PLASMA_RAMP[k])

    def test_missing_ramp(self):
        ramps = {PaletteType.INFERNO: palette_data.INFERNO_RAMP}
        with self.assertRaises(PaletteBuildError):
            PaletteRegistry(ramps)

    def test_malformed_ramp_fails_at_construction(self):
        ramps = dict((p, [(0.0, 0.0, 0.0)]) for p in PaletteType)
        ramps[PaletteType.JET] = []
        with self.assertRaises(PaletteBuildError):
            PaletteRegistry(ramps)

    def test_positions_length_mismatch(self):
        ramps = dict((p, [(0.0, 0.0, 0.0), (1.0, 1.0, 1.0)]) for p in PaletteType)
        with self.assertRaises(PaletteBuildError):
            PaletteRegistry(ramps, positions=palette_data.RAMP_POSITIONS)

    def test_custom_positions(self):
        ramps = dict((p, [(0.0, 0.0, 0.0), (1.0, 1.0, 1.0)]) for p in PaletteType)
        table = PaletteRegistry(ramps, positions=[0.25, 1.0]).table_for(PaletteType.MAGMA)
        self.assertEqual(table.lookup(0.2), Colour(0.0, 0.0, 0.0))
        self.assertEqual(table.lookup(0.3), Colour(1.0, 1.0, 1.0))

    def test_custom_ramps(self):
        ramps = dict((p, [(0.0, 0.0, 0.0), (1.0, 1.0, 1.0)]) for p in PaletteType)
        registry = PaletteRegistry(ramps)
        table = registry.table_for(PaletteType.VIRIDIS)
        self.assertEqual(table.lookup(0.0), Colour(0.0, 0.0, 0.0))
        self.assertEqual(table.lookup(1.0), Colour(1.0, 1.0, 1.0))


if __name__ == "__main__":
    unittest.main()
