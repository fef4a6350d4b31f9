"""Rendering configuration: glyph sets, tuned constants, per-call options."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


# ---------------------------------------------------------------------------
# Glyph sets, darkest glyph first
# ---------------------------------------------------------------------------
CHARACTER_SETS: Dict[str, Tuple[str, ...]] = {
    "standard": tuple("@%#*+=-:. "),
    "detailed": tuple(
        "$@B%8&WM#*oahkbdpqwmZO0QLCJUYXzcvunxrjft/\\|()1{}[]?-_+~<>i!lI;:,\"^'. "
    ),
    "simple": tuple("#?%. "),
    "binary": tuple("10 "),
    "braille": (),  # packed from 2x4 cells, never looked up
}

BLANK_GLYPH = " "
BRAILLE_BASE = 0x2800
BRAILLE_DOT_ORDER = (1, 2, 3, 7, 4, 5, 6, 8)  # column-major over a 2x4 cell
BRAILLE_CELL_WIDTH = 2
BRAILLE_CELL_HEIGHT = 4
BRAILLE_ON_THRESHOLD = 127


# ---------------------------------------------------------------------------
# Numeric floors
# ---------------------------------------------------------------------------
EPSILON = 1e-6
MIN_SIGMOID_BETA = 5.0


# ---------------------------------------------------------------------------
# Border heuristic thresholds
# ---------------------------------------------------------------------------
TRANSPARENT_ALPHA = 32
OPAQUE_ALPHA = 220
WHITE_BRIGHTNESS = 245
BLACK_BRIGHTNESS = 10
BORDER_DOMINANCE = 0.3


# ---------------------------------------------------------------------------
# Empirically tuned segmentation constants
# ---------------------------------------------------------------------------
DEFAULT_GRADIENT_GATE = 0.2
EDGE_PROBABILITY_SUPPRESSION = 0.75
EDGE_SMOOTH_BLEND = 0.25
MORPH_EDGE_THRESHOLD = 0.35

PREPROCESS_LEVELS_COMPACT = 2
PREPROCESS_LEVELS = 3
PREPROCESS_MEDIAN_RADIUS = 1
MAX_PREPROCESS_STRENGTH = 10


class GlyphSet(str, Enum):
    STANDARD = "standard"
    DETAILED = "detailed"
    SIMPLE = "simple"
    BINARY = "binary"
    BRAILLE = "braille"


class SegmentationMode(str, Enum):
    HEURISTIC = "heuristic"   # border sampling: transparent / white / black
    ADAPTIVE = "adaptive"     # Bradley threshold on smoothed luminance
    SOFT = "soft"             # sigmoid background probability
    RETINEX = "retinex"       # reflectance over local illumination


@dataclass(frozen=True)
class SegmentationProfile:
    """Tuned parameters for the local (non-heuristic) classifiers."""

    radius: int = 3
    threshold: float = 0.18            # Bradley t, and k for the soft variant
    gradient_gate: float = 0.15
    smooth_strength: float = 0.25
    morph_passes: int = 1
    edge_threshold: float = MORPH_EDGE_THRESHOLD
    retinex_percentile: float = 50.0


DEFAULT_PROFILE = SegmentationProfile()


def _profile_from(value) -> SegmentationProfile:
    if value is None:
        return DEFAULT_PROFILE
    if isinstance(value, SegmentationProfile):
        return value
    return SegmentationProfile(**value)


_CAMEL_KEYS = {
    "invertColors": "invert_colors",
    "charSetName": "glyph_set",
    "glyphSetId": "glyph_set",
    "charSet": "glyphs",
    "glyphList": "glyphs",
    "compactMode": "compact_mode",
    "preprocessStrength": "preprocess_strength",
}


@dataclass(frozen=True)
class RenderOptions:
    """Options for a single render call.

    ``glyphs`` defaults to the list registered for ``glyph_set``.  Braille
    output ignores both ``glyphs`` and ``dithering``.
    """

    invert_colors: bool = True
    glyph_set: GlyphSet = GlyphSet.STANDARD
    glyphs: Optional[Tuple[str, ...]] = None
    gamma: float = 1.0
    dithering: bool = True
    compact_mode: bool = False
    preprocess: bool = False
    preprocess_strength: int = 0
    segmentation: SegmentationMode = SegmentationMode.HEURISTIC
    profile: SegmentationProfile = field(default=DEFAULT_PROFILE)

    def __post_init__(self):
        object.__setattr__(self, "glyph_set", GlyphSet(self.glyph_set))
        object.__setattr__(self, "segmentation", SegmentationMode(self.segmentation))
        if self.glyphs is None:
            object.__setattr__(self, "glyphs", CHARACTER_SETS[self.glyph_set.value])
        else:
            glyphs = tuple(self.glyphs)
            # Braille packs dots and never looks glyphs up
            for glyph in () if self.is_braille else glyphs:
                if not isinstance(glyph, str) or len(glyph) != 1:
                    raise ValueError(f"Glyphs must be single characters, got {glyph!r}")
            object.__setattr__(self, "glyphs", glyphs)
        if not self.gamma > 0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
        if not 0 <= self.preprocess_strength <= MAX_PREPROCESS_STRENGTH:
            raise ValueError(
                f"preprocess_strength must be within 0..{MAX_PREPROCESS_STRENGTH}, "
                f"got {self.preprocess_strength}"
            )

    @property
    def is_braille(self) -> bool:
        return self.glyph_set is GlyphSet.BRAILLE

    def to_dict(self) -> dict:
        return {
            "invert_colors": bool(self.invert_colors),
            "glyph_set": self.glyph_set.value,
            "glyphs": list(self.glyphs),
            "gamma": float(self.gamma),
            "dithering": bool(self.dithering),
            "compact_mode": bool(self.compact_mode),
            "preprocess": bool(self.preprocess),
            "preprocess_strength": int(self.preprocess_strength),
            "segmentation": self.segmentation.value,
            "profile": asdict(self.profile),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "RenderOptions":
        """Build options from a plain dict; camelCase keys are accepted too."""
        data = {_CAMEL_KEYS.get(key, key): value for key, value in d.items()}
        return cls(
            invert_colors=data.get("invert_colors", True),
            glyph_set=GlyphSet(data.get("glyph_set", "standard")),
            glyphs=data.get("glyphs"),
            gamma=float(data.get("gamma", 1.0)),
            dithering=data.get("dithering", True),
            compact_mode=data.get("compact_mode", False),
            preprocess=data.get("preprocess", False),
            preprocess_strength=int(data.get("preprocess_strength", 0)),
            segmentation=SegmentationMode(data.get("segmentation", "heuristic")),
            profile=_profile_from(data.get("profile")),
        )
