"""Travel icon orientation and sprite helpers."""
from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, NamedTuple, Optional

import numpy as np
from PIL import Image, ImageDraw, ImageFont


ROTATION_SMOOTHING = 0.03
ROTATION_DEADBAND_DEGREES = 5.0


@dataclass(frozen=True)
class IconConfig:
    """How an icon asset is drawn.

    ``facing`` is the direction the source image points at zero rotation.
    Rotating icons tilt to follow the path; the others stay upright and only
    mirror to face the direction of travel.
    """

    facing: str
    rotates: bool
    size: int


ICON_CONFIG: Dict[str, IconConfig] = {
    "bike": IconConfig(facing="left", rotates=True, size=60),
    "car": IconConfig(facing="right", rotates=True, size=60),
    "person": IconConfig(facing="right", rotates=False, size=40),
    "backpacker": IconConfig(facing="left", rotates=False, size=35),
}

NO_ICON = "none"


def icon_config(kind: str) -> IconConfig:
    return ICON_CONFIG.get(kind, ICON_CONFIG["person"])


class IconTransform(NamedTuple):
    angle: float
    mirror: bool
    last_angle: float


def normalize_angle(angle: float) -> float:
    """Wrap ``angle`` into ``[-180, 180]``."""

    while angle > 180.0:
        angle -= 360.0
    while angle < -180.0:
        angle += 360.0
    return angle


def icon_transform(
    kind: str,
    dx: float,
    dy: float,
    last_angle: float,
    smoothing: float = ROTATION_SMOOTHING,
    deadband: float = ROTATION_DEADBAND_DEGREES,
) -> IconTransform:
    """Return the rotation and mirror flag for an icon travelling along ``(dx, dy)``.

    ``dx``/``dy`` are screen-space deltas (y grows downwards). The mirror is
    applied before the rotation when composing the final transform.
    """

    config = icon_config(kind)
    traveling_left = dx < 0

    if not config.rotates:
        mirror = traveling_left != (config.facing == "left")
        return IconTransform(0.0, mirror, last_angle)

    direction = math.degrees(math.atan2(dy, dx))
    relative = direction if config.facing == "right" else normalize_angle(direction - 180.0)
    # Heading within 90 degrees of the way the asset faces: draw it as is.
    mirror = abs(relative) > 90.0
    # A mirrored sprite faces the other way before it is turned clockwise.
    tilt = normalize_angle(relative + 180.0) if mirror else relative

    delta = normalize_angle(tilt - last_angle)
    angle = last_angle
    if abs(delta) > deadband:
        angle = normalize_angle(last_angle + delta * smoothing)
    return IconTransform(angle, mirror, angle)


_ICON_COLOURS: Dict[str, str] = {
    "car": "#1f77b4",
    "bike": "#d62728",
    "person": "#ff7f0e",
    "backpacker": "#2ca02c",
}

_ICON_LETTERS: Dict[str, str] = {
    "car": "C",
    "bike": "B",
    "person": "P",
    "backpacker": "H",
}


def _generate_placeholder(kind: str, size: int) -> Image.Image:
    colour = _ICON_COLOURS.get(kind, "#444444")
    letter = _ICON_LETTERS.get(kind, kind[:1].upper())
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    draw.ellipse([(0, 0), (size - 1, size - 1)], fill=colour)

    # Small nose on the facing side so mirroring is visible on placeholders.
    nose_x = size - 1 if icon_config(kind).facing == "right" else 0
    draw.polygon(
        [(nose_x, size / 2.0), (size / 2.0, size * 0.3), (size / 2.0, size * 0.7)],
        fill="white",
    )

    font = ImageFont.load_default()
    text_bbox = draw.textbbox((0, 0), letter, font=font)
    text_width = text_bbox[2] - text_bbox[0]
    text_height = text_bbox[3] - text_bbox[1]
    draw.text(
        ((size - text_width) / 2.0, (size - text_height) / 2.0),
        letter,
        font=font,
        fill="black",
    )
    return image


def load_icon(kind: str, icon_path: Optional[Path] = None) -> Image.Image:
    """Return the RGBA sprite for ``kind`` at its configured size."""

    size = icon_config(kind).size
    if icon_path and Path(icon_path).exists():
        image = Image.open(icon_path).convert("RGBA")
        return image.resize((size, size), Image.LANCZOS)
    return _generate_placeholder(kind, size)


def transform_icon(icon: Image.Image, angle: float, mirror: bool) -> np.ndarray:
    """Mirror then rotate ``icon`` clockwise by ``angle`` degrees."""

    image = icon.transpose(Image.FLIP_LEFT_RIGHT) if mirror else icon
    if angle:
        image = image.rotate(-angle, resample=Image.BICUBIC, expand=True)
    return np.array(image)
