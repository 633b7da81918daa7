"""
Unit tests for the colour mapper (active/explicit mapping, threading, rendering helpers).
Run from project root: python -m pytest tests/ -v
"""
import sys
import threading
import unittest
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from colour_mapper import ColourMapper, get_colour_mapper  # noqa: E402
from palette_manager import PaletteRegistry, PaletteType  # noqa: E402

REGISTRY = PaletteRegistry()


class TestColourMapperScenarios(unittest.TestCase):
    """Known colours from the built-in palettes."""

    def setUp(self):
        self.mapper = ColourMapper(REGISTRY)

    def assertColour(self, colour, expected):
        self.assertEqual(len(colour), 4)
        for actual, wanted in zip(colour, expected):
            self.assertAlmostEqual(actual, wanted, places=6)

    def test_default_palette_is_inferno(self):
        self.assertIs(self.mapper.active_palette, PaletteType.INFERNO)

    def test_constructor_rejects_string_default(self):
        with self.assertRaises(TypeError):
            ColourMapper(REGISTRY, default_palette="jet")

    def test_inferno_midpoint(self):
        self.assertColour(self.mapper.map_explicit(0.5, PaletteType.INFERNO),
                          (0.729909, 0.212759, 0.333861, 1.0))

    def test_jet_zero(self):
        self.assertColour(self.mapper.map_explicit(0.0, PaletteType.JET), (0.0, 0.0, 0.5, 1.0))

    def test_jet_midpoint(self):
        self.assertColour(self.mapper.map_explicit(0.5, PaletteType.JET),
                          (0.477546, 0.988235, 0.490196, 1.0))

    def test_viridis_one(self):
        self.assertColour(self.mapper.map_explicit(1.0, PaletteType.VIRIDIS),
                          (0.993248, 0.906157, 0.143936, 1.0))

    def test_switching_active_palette(self):
        self.mapper.set_active_palette(PaletteType.JET)
        self.assertColour(self.mapper.map_active(0.0), (0.0, 0.0, 0.5, 1.0))
        self.mapper.set_active_palette(PaletteType.INFERNO)
        self.assertColour(self.mapper.map_active(0.5), (0.729909, 0.212759, 0.333861, 1.0))


class TestColourMapperProperties(unittest.TestCase):
    """Boundary, clamping and determinism for every palette."""

    def setUp(self):
        self.mapper = ColourMapper(REGISTRY)

    def test_ends_and_clamping(self):
        for palette in PaletteType:
            table = REGISTRY.table_for(palette)
            self.assertEqual(self.mapper.map_explicit(0.0, palette), table[0])
            self.assertEqual(self.mapper.map_explicit(1.0, palette), table[255])
            self.assertEqual(self.mapper.map_explicit(-1.0, palette), table[0])
            self.assertEqual(self.mapper.map_explicit(2.0, palette), table[255])

    def test_buckets(self):
        for palette in PaletteType:
            table = REGISTRY.table_for(palette)
            for k in range(256):
                self.assertEqual(self.mapper.map_explicit((k + 0.5) / 256.0, palette), table[k])
                self.assertEqual(self.mapper.map_explicit(k / 256.0, palette), table[max(k - 1, 0)])

    def test_alpha_always_one(self):
        for palette in PaletteType:
            for value in (-3.0, 0.0, 0.1, 0.5, 0.9, 1.0, 7.0):
                self.assertEqual(self.mapper.map_explicit(value, palette).a, 1.0)

    def test_deterministic(self):
        for palette in PaletteType:
            first = self.mapper.map_explicit(0.3141, palette)
            second = self.mapper.map_explicit(0.3141, palette)
            self.assertEqual(first, second)

    def test_map_explicit_ignores_active(self):
        self.mapper.set_active_palette(PaletteType.MAGMA)
        self.assertEqual(self.mapper.map_explicit(0.7, PaletteType.PLASMA),
                         REGISTRY.table_for(PaletteType.PLASMA).lookup(0.7))
        self.assertIs(self.mapper.active_palette, PaletteType.MAGMA)

    def test_map_active_follows_selection(self):
        for palette in PaletteType:
            self.mapper.set_active_palette(palette)
            self.assertEqual(self.mapper.map_active(0.42), self.mapper.map_explicit(0.42, palette))

    def test_set_active_palette_rejects_strings(self):
        with self.assertRaises(TypeError):
            self.mapper.set_active_palette("jet")
        self.assertIs(self.mapper.active_palette, PaletteType.INFERNO)

    def test_custom_default(self):
        mapper = ColourMapper(REGISTRY, default_palette=PaletteType.VIRIDIS)
        self.assertEqual(mapper.map_active(1.0), REGISTRY.table_for(PaletteType.VIRIDIS)[255])

    def test_map_array(self):
        values = np.linspace(-0.5, 1.5, 41)
        self.mapper.set_active_palette(PaletteType.JET)
        result = self.mapper.map_array(values)
        self.assertEqual(result.shape, (41, 4))
        for value, row in zip(values, result):
            self.assertEqual(tuple(row), tuple(self.mapper.map_active(float(value))))
        explicit = self.mapper.map_array(values, PaletteType.MAGMA)
        self.assertEqual(tuple(explicit[20]), tuple(self.mapper.map_explicit(float(values[20]), PaletteType.MAGMA)))


class TestColourMapperThreading(unittest.TestCase):
    """Selection changes made on one thread are seen by mapping calls on others."""

    def test_visibility_after_handoff(self):
        mapper = ColourMapper(REGISTRY)
        switched = threading.Event()
        results = []

        def reader():
            switched.wait(timeout=5)
            results.append(mapper.map_active(0.0))

        thread = threading.Thread(target=reader)
        thread.start()
        mapper.set_active_palette(PaletteType.JET)
        switched.set()
        thread.join(timeout=5)

        self.assertEqual(results, [REGISTRY.table_for(PaletteType.JET)[0]])

    def test_concurrent_reads_see_whole_palettes(self):
        mapper = ColourMapper(REGISTRY)
        allowed = {REGISTRY.table_for(PaletteType.INFERNO)[0], REGISTRY.table_for(PaletteType.JET)[0]}
        stop = threading.Event()
        unexpected = []

        def reader():
            while not stop.is_set():
                colour = mapper.map_active(0.0)
                if colour not in allowed:
                    unexpected.append(colour)

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for thread in readers:
            thread.start()
        for i in range(2000):
            mapper.set_active_palette(PaletteType.JET if i % 2 else PaletteType.INFERNO)
        stop.set()
        for thread in readers:
            thread.join(timeout=5)

        self.assertEqual(unexpected, [])


class TestColourMapperRendering(unittest.TestCase):
    """Legend samples, frame colourization and previews."""

    def setUp(self):
        self.mapper = ColourMapper(REGISTRY)

    def test_sample(self):
        swatches = self.mapper.sample(6, PaletteType.PLASMA)
        self.assertEqual(len(swatches), 6)
        self.assertEqual(swatches[0], self.mapper.map_explicit(0.0, PaletteType.PLASMA))
        self.assertEqual(swatches[2], self.mapper.map_explicit(0.4, PaletteType.PLASMA))
        self.assertEqual(swatches[-1], self.mapper.map_explicit(1.0, PaletteType.PLASMA))

    def test_sample_edge_counts(self):
        self.assertEqual(self.mapper.sample(0), [])
        self.assertEqual(self.mapper.sample(1), [self.mapper.map_active(0.0)])

    def test_colourize_uint8(self):
        frame = np.array([[0, 255], [255, 0]], dtype=np.uint8)
        output = self.mapper.colourize(frame, PaletteType.JET)
        self.assertEqual(output.shape, (2, 2, 3))
        self.assertEqual(output.dtype, np.uint8)
        self.assertEqual(tuple(output[0, 0]), self.mapper.map_explicit(0.0, PaletteType.JET).to_bgr8())
        self.assertEqual(tuple(output[0, 1]), self.mapper.map_explicit(1.0, PaletteType.JET).to_bgr8())

    def test_colourize_float(self):
        frame = np.array([[0.0, 0.5, 1.0]])
        output = self.mapper.colourize(frame)
        self.assertEqual(output.shape, (1, 3, 3))
        self.assertEqual(tuple(output[0, 1]), self.mapper.map_active(0.5).to_bgr8())

    def test_colourize_uint16(self):
        frame = np.array([[0, 65535]], dtype=np.uint16)
        output = self.mapper.colourize(frame, PaletteType.JET)
        self.assertEqual(tuple(output[0, 0]), self.mapper.map_explicit(0.0, PaletteType.JET).to_bgr8())
        self.assertEqual(tuple(output[0, 1]), self.mapper.map_explicit(1.0, PaletteType.JET).to_bgr8())

    def test_colourize_signed_integer_rejected(self):
        frame = np.array([[0, 64, 128, 255]], dtype=np.int64)
        with self.assertRaises(TypeError):
            self.mapper.colourize(frame, PaletteType.JET)

    def test_colourize_three_channel_same_for_uint8_and_float(self):
        # Pure red BGR pixel; luma 0.299 and 76/255 share bucket 76
        as_uint8 = np.array([[[0, 0, 255]]], dtype=np.uint8)
        as_float = np.array([[[0.0, 0.0, 1.0]]])
        from_uint8 = self.mapper.colourize(as_uint8, PaletteType.JET)
        from_float = self.mapper.colourize(as_float, PaletteType.JET)
        self.assertEqual(from_uint8.shape, (1, 1, 3))
        self.assertEqual(tuple(from_uint8[0, 0]), tuple(from_float[0, 0]))
        self.assertEqual(tuple(from_float[0, 0]), REGISTRY.table_for(PaletteType.JET)[76].to_bgr8())

    def test_colourize_empty(self):
        self.assertIsNone(self.mapper.colourize(None))
        empty = np.zeros((0, 0), dtype=np.uint8)
        self.assertIs(self.mapper.colourize(empty), empty)

    def test_preview(self):
        preview = self.mapper.create_palette_preview(PaletteType.VIRIDIS, width=128, height=10)
        self.assertEqual(preview.shape, (10, 128, 3))
        self.assertEqual(tuple(preview[0, 0]), self.mapper.map_explicit(0.0, PaletteType.VIRIDIS).to_bgr8())
        self.assertEqual(tuple(preview[9, 127]), self.mapper.map_explicit(1.0, PaletteType.VIRIDIS).to_bgr8())

    def test_global_instance(self):
        self.assertIs(get_colour_mapper(), get_colour_mapper())


if __name__ == "__main__":
    unittest.main()
