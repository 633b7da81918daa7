"""
Palette Manager for Scalar Colour Mapping
Builds quantized 256-entry palette tables and resolves palette ids to tables.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

import palette_data

logger = logging.getLogger(__name__)

TABLE_SIZE = 256


class PaletteBuildError(ValueError):
    """Raised when a palette ramp definition is malformed."""


class PaletteType(Enum):
    """Available scalar colour palettes."""

    INFERNO = "inferno"  # Black→purple→orange→pale yellow (default)
    MAGMA = "magma"      # Black→purple→pink→pale yellow
    PLASMA = "plasma"    # Blue-purple→magenta→orange→yellow
    VIRIDIS = "viridis"  # Purple→teal→green→yellow
    JET = "jet"          # Dark blue→cyan→yellow→dark red

    @classmethod
    def from_name(cls, name: str) -> 'PaletteType':
        """
        Resolve a persisted palette name.

        Args:
            name: Palette value or member name (case-insensitive)

        Returns:
            Matching PaletteType

        Raises:
            ValueError: If the name is not a known palette
        """
        key = str(name).strip().lower()
        for palette in cls:
            if palette.value == key:
                return palette
        raise ValueError(f"Unknown palette: {name!r}")

    @classmethod
    def from_index(cls, index: int) -> 'PaletteType':
        """Resolve a palette from its position in the enum (0-based)."""
        members = list(cls)
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(members):
            raise ValueError(f"Palette index out of range: {index!r}")
        return members[index]

    @property
    def index(self) -> int:
        return list(PaletteType).index(self)


class Colour(NamedTuple):
    """RGBA colour, float channels in [0, 1]."""
    r: float
    g: float
    b: float
    a: float = 1.0

    def to_rgb8(self) -> Tuple[int, int, int]:
        return (int(round(self.r * 255)), int(round(self.g * 255)), int(round(self.b * 255)))

    def to_bgr8(self) -> Tuple[int, int, int]:
        """8-bit channels in OpenCV drawing order."""
        r, g, b = self.to_rgb8()
        return (b, g, r)


@dataclass(frozen=True)
class ControlPoint:
    """A (position, colour) sample of a palette ramp."""
    position: float
    colour: Colour


class PaletteTable:
    """
    Immutable 256-entry quantized lookup table for one palette.

    Entry 0 covers [0, 1/256]; entry k (k >= 1) covers (k/256, (k+1)/256].
    Out-of-range input is clamped, so anything <= 0 maps to entry 0 and
    anything >= 1 maps to entry 255.
    """

    def __init__(self, colours: np.ndarray, name: str = "custom"):
        """
        Initialize from a prepared colour array. Use build() or from_ramp()
        to create tables from ramp definitions.

        Args:
            colours: TABLE_SIZE x 4 float array (RGBA)
            name: Palette name for logging
        """
        colours = np.array(colours, dtype=np.float64)
        if colours.shape != (TABLE_SIZE, 4):
            raise PaletteBuildError(
                f"Palette '{name}' needs a {TABLE_SIZE}x4 colour array, got {colours.shape}")
        colours.setflags(write=False)

        self.name = name
        self._colours = colours
        self._entries: Tuple[Colour, ...] = tuple(Colour(*(float(c) for c in row)) for row in colours)
        self._bgr_lut: Optional[np.ndarray] = None

    @classmethod
    def build(cls, control_points: Iterable[ControlPoint], interpolate: bool = False,
              name: str = "custom") -> 'PaletteTable':
        """
        Build a table from an ordered colour ramp.

        Bucket k is sampled at its centre (k + 0.5) / 256. Without
        interpolation the ramp is treated as piecewise constant: each control
        point's colour applies up to and including its position, and the
        last point covers everything above.

        Args:
            control_points: Non-empty, position-ordered control points
            interpolate: Linearly blend between control points instead
            name: Palette name for logging

        Returns:
            PaletteTable

        Raises:
            PaletteBuildError: If the ramp is empty, unsorted or out of range
        """
        points = list(control_points)
        if not points:
            raise PaletteBuildError(f"Palette '{name}' has an empty ramp")

        positions = np.array([p.position for p in points], dtype=np.float64)
        colours = np.array([tuple(p.colour) for p in points], dtype=np.float64)

        if not np.all(np.isfinite(positions)):
            raise PaletteBuildError(f"Palette '{name}' has non-finite control point positions")
        if positions.min() < 0.0 or positions.max() > 1.0:
            raise PaletteBuildError(f"Palette '{name}' has control points outside [0, 1]")
        if np.any(np.diff(positions) < 0.0):
            raise PaletteBuildError(f"Palette '{name}' control points are not sorted by position")
        if colours.ndim != 2 or colours.shape[1] != 4:
            raise PaletteBuildError(f"Palette '{name}' colours must be RGBA")
        if not np.all(np.isfinite(colours)) or colours.min() < 0.0 or colours.max() > 1.0:
            raise PaletteBuildError(f"Palette '{name}' has colour channels outside [0, 1]")
        if np.any(colours[:, 3] != 1.0):
            raise PaletteBuildError(f"Palette '{name}' must be fully opaque")

        centres = (np.arange(TABLE_SIZE) + 0.5) / TABLE_SIZE

        if interpolate and len(points) > 1:
            table = np.column_stack([
                np.interp(centres, positions, colours[:, channel]) for channel in range(4)
            ])
        else:
            # First control point at or above each bucket centre
            idx = np.searchsorted(positions, centres, side='left')
            table = colours[np.minimum(idx, len(points) - 1)]

        logger.debug(f"Built palette table '{name}' from {len(points)} control points")
        return cls(table, name=name)

    @classmethod
    def from_ramp(cls, samples: Sequence[Sequence[float]],
                  positions: Optional[Sequence[float]] = None,
                  interpolate: bool = False, name: str = "custom") -> 'PaletteTable':
        """
        Build a table from RGB(A) samples.

        Args:
            samples: Colour samples ordered low to high
            positions: Upper bound of each sample (default: evenly spaced,
                ending at 1.0)
            interpolate: Linearly blend between samples
            name: Palette name for logging

        Returns:
            PaletteTable
        """
        if positions is None:
            positions = [(i + 1) / len(samples) for i in range(len(samples))]
        if len(positions) != len(samples):
            raise PaletteBuildError(
                f"Palette '{name}' has {len(samples)} samples but {len(positions)} positions")

        points = []
        for position, sample in zip(positions, samples):
            if len(sample) not in (3, 4):
                raise PaletteBuildError(f"Palette '{name}' sample {sample!r} is not RGB or RGBA")
            points.append(ControlPoint(float(position), Colour(*(float(c) for c in sample))))

        return cls.build(points, interpolate=interpolate, name=name)

    @property
    def entries(self) -> Tuple[Colour, ...]:
        return self._entries

    @property
    def colours(self) -> np.ndarray:
        """Read-only TABLE_SIZE x 4 RGBA array."""
        return self._colours

    def __len__(self) -> int:
        return TABLE_SIZE

    def __getitem__(self, index: int) -> Colour:
        return self._entries[index]

    def __repr__(self) -> str:
        return f"PaletteTable(name={self.name!r})"

    def lookup(self, value: float) -> Colour:
        """
        Map a normalized value to its bucket colour.

        Args:
            value: Normalized scalar; clamped to [0, 1], NaN maps to entry 0

        Returns:
            Colour of the bucket containing value
        """
        if not value > 0.0:
            return self._entries[0]
        if value >= 1.0:
            return self._entries[TABLE_SIZE - 1]
        return self._entries[math.ceil(value * TABLE_SIZE) - 1]

    def lookup_array(self, values) -> np.ndarray:
        """
        Vectorised lookup().

        Args:
            values: Array-like of normalized scalars

        Returns:
            Float array of shape values.shape + (4,)
        """
        values = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
        idx = np.nan_to_num(np.ceil(values * TABLE_SIZE) - 1, nan=0.0)
        idx = np.clip(idx, 0, TABLE_SIZE - 1).astype(np.intp)
        return self._colours[idx]

    def to_bgr_lut(self) -> np.ndarray:
        """
        OpenCV user colormap for 8-bit input.

        Pixel p is treated as the normalized value p / 255.

        Returns:
            256x1x3 uint8 array (BGR)
        """
        if self._bgr_lut is None:
            rgb = self.lookup_array(np.arange(256) / 255.0)[:, :3]
            self._bgr_lut = np.rint(rgb[:, ::-1] * 255).astype(np.uint8).reshape(256, 1, 3)
        return self._bgr_lut


DEFAULT_RAMPS: Dict[PaletteType, Sequence[Sequence[float]]] = {
    PaletteType.INFERNO: palette_data.INFERNO_RAMP,
    PaletteType.MAGMA: palette_data.MAGMA_RAMP,
    PaletteType.PLASMA: palette_data.PLASMA_RAMP,
    PaletteType.VIRIDIS: palette_data.VIRIDIS_RAMP,
    PaletteType.JET: palette_data.JET_RAMP,
}


class PaletteRegistry:
    """
    Owns one PaletteTable per PaletteType.

    Every palette is built up front; a registry missing any palette cannot
    be constructed, so table_for() is total over PaletteType.
    """

    def __init__(self, ramps: Optional[Dict[PaletteType, Sequence[Sequence[float]]]] = None,
                 positions: Optional[Sequence[float]] = None):
        """
        Initialize palette registry.

        Args:
            ramps: PaletteType -> RGB samples (default: built-in ramps)
            positions: Sample upper bounds shared by all ramps; must match
                every ramp's length (default: RAMP_POSITIONS for the
                built-in ramps, evenly spaced for custom ones)
        """
        if ramps is None:
            ramps = DEFAULT_RAMPS
            if positions is None:
                positions = palette_data.RAMP_POSITIONS

        missing = [p.value for p in PaletteType if p not in ramps]
        if missing:
            raise PaletteBuildError(f"No ramp defined for palettes: {', '.join(missing)}")

        self._tables: Dict[PaletteType, PaletteTable] = {}
        for palette in PaletteType:
            self._tables[palette] = PaletteTable.from_ramp(ramps[palette], positions, name=palette.value)

        logger.info(f"Palette registry ready: {len(self._tables)} palettes")

    def table_for(self, palette: PaletteType) -> PaletteTable:
        """Get the (shared) table for a palette."""
        return self._tables[palette]

    def palettes(self) -> List[PaletteType]:
        return list(self._tables)

    def __contains__(self, palette) -> bool:
        return palette in self._tables

    def __iter__(self) -> Iterator[PaletteType]:
        return iter(self._tables)
