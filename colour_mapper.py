"""
Colour Mapper
Public scalar-to-colour service used by rendering code.

Holds the active palette selection and maps normalized values through the
palette tables. Mapping calls take no locks and never log, so they are safe
to call per sample from a render thread while another thread switches the
active palette.
"""

import logging
import threading
from typing import List, Optional

import cv2
import numpy as np

from palette_manager import Colour, PaletteRegistry, PaletteTable, PaletteType

logger = logging.getLogger(__name__)


class ColourMapper:
    """
    Maps normalized scalars to RGBA colours.

    The active palette is a single attribute holding a PaletteType member.
    Rebinding it is atomic, so a reader sees either the old or the new
    palette, never a mix.
    """

    def __init__(self, registry: Optional[PaletteRegistry] = None,
                 default_palette: PaletteType = PaletteType.INFERNO):
        """
        Initialize colour mapper.

        Args:
            registry: Palette tables (default: built-in palettes)
            default_palette: Palette active until set_active_palette() is called
        """
        self.registry = registry if registry is not None else PaletteRegistry()
        self._active_palette = self._check_palette(default_palette)

    @staticmethod
    def _check_palette(palette) -> PaletteType:
        if not isinstance(palette, PaletteType):
            raise TypeError(f"Expected PaletteType, got {type(palette).__name__}")
        return palette

    @property
    def active_palette(self) -> PaletteType:
        return self._active_palette

    def set_active_palette(self, palette: PaletteType):
        """
        Publish a new active palette.

        Args:
            palette: Palette used by subsequent map_active() calls
        """
        palette = self._check_palette(palette)

        previous = self._active_palette
        self._active_palette = palette

        if previous is not palette:
            logger.info(f"Active palette: {previous.value} -> {palette.value}")

    def map_active(self, value: float) -> Colour:
        """Map a normalized value through the active palette."""
        return self.registry.table_for(self._active_palette).lookup(value)

    def map_explicit(self, value: float, palette: PaletteType) -> Colour:
        """Map a normalized value through a specific palette."""
        return self.registry.table_for(palette).lookup(value)

    def _resolve(self, palette: Optional[PaletteType]) -> PaletteTable:
        if palette is None:
            palette = self._active_palette
        return self.registry.table_for(palette)

    def map_array(self, values, palette: Optional[PaletteType] = None) -> np.ndarray:
        """
        Map an array of normalized values.

        Args:
            values: Array-like of normalized scalars
            palette: Palette to use (active palette if None)

        Returns:
            Float RGBA array of shape values.shape + (4,)
        """
        return self._resolve(palette).lookup_array(values)

    def sample(self, count: int, palette: Optional[PaletteType] = None) -> List[Colour]:
        """
        Evenly spaced colours across a palette, e.g. for a legend.

        Args:
            count: Number of colours (values i / (count - 1))
            palette: Palette to use (active palette if None)

        Returns:
            List of colours from low to high
        """
        if count <= 0:
            return []

        table = self._resolve(palette)
        if count == 1:
            return [table.lookup(0.0)]
        return [table.lookup(i / (count - 1)) for i in range(count)]

    def colourize(self, frame: np.ndarray, palette: Optional[PaletteType] = None) -> np.ndarray:
        """
        Apply a palette to a single-channel frame.

        Args:
            frame: uint8 frame (0-255 spans the palette), other unsigned
                integer frame (0 to dtype max spans the palette) or float
                frame of normalized values; 3-channel BGR frames are
                converted to gray
            palette: Palette to use (active palette if None)

        Returns:
            Colourized frame (BGR, uint8)

        Raises:
            TypeError: For signed integer frames (no fixed full-scale value)
        """
        if frame is None or frame.size == 0:
            return frame

        table = self._resolve(palette)

        if frame.dtype == np.uint8:
            if frame.ndim == 3:
                frame = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
            return cv2.applyColorMap(frame, table.to_bgr_lut())

        if np.issubdtype(frame.dtype, np.signedinteger):
            raise TypeError(f"Cannot colourize {frame.dtype} frames; "
                            f"convert to uint8 or normalized float first")
        if np.issubdtype(frame.dtype, np.unsignedinteger):
            frame = frame.astype(np.float64) / np.iinfo(frame.dtype).max

        if frame.ndim == 3:
            # Same luma weights as the uint8 path
            frame = cv2.cvtColor(frame.astype(np.float32), cv2.COLOR_BGR2GRAY)
        rgb = table.lookup_array(frame)[..., :3]
        return np.rint(rgb[..., ::-1] * 255).astype(np.uint8)

    def create_palette_preview(self, palette: Optional[PaletteType] = None,
                               width: int = 256, height: int = 50) -> np.ndarray:
        """
        Create a preview image of a palette.

        Args:
            palette: Palette to preview (active palette if None)
            width: Preview width
            height: Preview height

        Returns:
            Preview image (BGR), low values on the left
        """
        gradient = np.tile(np.linspace(0.0, 1.0, width), (height, 1))
        return self.colourize(gradient, palette)


_mapper_instance: Optional[ColourMapper] = None
_mapper_lock = threading.Lock()


def get_colour_mapper() -> ColourMapper:
    """Get global colour mapper instance (singleton)"""
    global _mapper_instance

    if _mapper_instance is None:
        with _mapper_lock:
            if _mapper_instance is None:
                _mapper_instance = ColourMapper()

    return _mapper_instance
