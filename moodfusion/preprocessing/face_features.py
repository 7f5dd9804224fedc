"""
Facial Feature Extractor — Skin Detection & Regional Statistics
================================================================
Locates the face in a raw RGB(A) frame with a YCbCr skin-colour test and
summarises the region with a handful of interpretable statistics:

  | Feature            | Meaning                                         |
  |--------------------|-------------------------------------------------|
  | upper/middle/lower | mean brightness of each horizontal third        |
  | edge_density       | share of sampled pixels on a strong edge        |
  | color_variance     | spread of brightness inside the face region     |
  | face_size          | fraction of the frame covered by the face       |

No detector model is needed, so extraction runs in a few milliseconds on
a webcam-sized frame.  Frames without enough skin pixels (no face, bad
lighting) produce ``None`` instead of an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from moodfusion.utils.helpers import load_config, setup_logging

logger = setup_logging()

PixelInput = Union[np.ndarray, bytes, bytearray, memoryview, Image.Image, str, Path]


@dataclass(frozen=True)
class FaceRegion:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class FacialFeatures:
    upper_brightness: float
    middle_brightness: float
    lower_brightness: float
    edge_density: float
    color_variance: float
    face_size: float
    region: FaceRegion

    @property
    def avg_brightness(self) -> float:
        return (self.upper_brightness + self.middle_brightness + self.lower_brightness) / 3

    @property
    def upper_middle_ratio(self) -> float:
        return self.upper_brightness / max(self.middle_brightness, 0.001)

    @property
    def lower_middle_ratio(self) -> float:
        return self.lower_brightness / max(self.middle_brightness, 0.001)

    def as_dict(self) -> dict[str, float]:
        """The five values the facial profiles are defined over."""
        return {
            "avg_brightness": self.avg_brightness,
            "upper_middle_ratio": self.upper_middle_ratio,
            "lower_middle_ratio": self.lower_middle_ratio,
            "edge_density": self.edge_density,
            "color_variance": self.color_variance,
        }


class FacialFeatureExtractor:
    """Turn a pixel buffer into ``FacialFeatures`` (or ``None``)."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()

        face_cfg = config["face"]
        skin = face_cfg["skin"]
        self.grid_step = face_cfg["grid_step"]
        self.min_skin_samples = face_cfg["min_skin_samples"]
        self.cb_range = tuple(skin["cb_range"])
        self.cr_range = tuple(skin["cr_range"])
        self.luma_range = tuple(skin["luma_range"])
        self.brightness_step = face_cfg["brightness_step"]
        self.edge_step = face_cfg["edge_step"]
        self.edge_threshold = face_cfg["edge_threshold"]
        logger.info("Facial feature extractor ready (grid=%d px)", self.grid_step)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(
        self,
        pixels: PixelInput,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> Optional[FacialFeatures]:
        """Detect the face region and compute its statistics.

        Parameters
        ----------
        pixels : ndarray, bytes-like, PIL.Image or path
            An ``H x W x 3|4`` array, a flat RGB(A) buffer (with ``width``
            and ``height``), an image object or an image file path.

        Returns
        -------
        FacialFeatures, or None when no face could be located.
        """
        rgb = self.to_rgb_array(pixels, width, height)
        if rgb is None:
            logger.debug("Malformed pixel buffer; skipping frame.")
            return None

        region = self.detect_skin_region(rgb)
        if region is None:
            logger.debug("Not enough skin pixels; no face in frame.")
            return None

        gray = rgb.mean(axis=2)
        third = region.height // 3
        upper = self._region_brightness(gray, region.x, region.y, region.width, third)
        middle = self._region_brightness(gray, region.x, region.y + third, region.width, third)
        lower = self._region_brightness(gray, region.x, region.y + 2 * third, region.width, third)

        img_h, img_w = gray.shape
        return FacialFeatures(
            upper_brightness=upper,
            middle_brightness=middle,
            lower_brightness=lower,
            edge_density=self._edge_density(gray, region),
            color_variance=self._color_variance(gray, region),
            face_size=(region.width * region.height) / float(img_w * img_h),
            region=region,
        )

    def detect_skin_region(self, rgb: np.ndarray) -> Optional[FaceRegion]:
        """Bounding box of the skin-coloured pixels on a sparse grid."""
        step = self.grid_step
        grid = rgb[::step, ::step]
        r, g, b = grid[..., 0], grid[..., 1], grid[..., 2]

        luma = 0.299 * r + 0.587 * g + 0.114 * b
        cb = 128 - 0.168736 * r - 0.331264 * g + 0.5 * b
        cr = 128 + 0.5 * r - 0.418688 * g - 0.081312 * b

        mask = (
            (cb >= self.cb_range[0]) & (cb <= self.cb_range[1])
            & (cr >= self.cr_range[0]) & (cr <= self.cr_range[1])
            & (luma > self.luma_range[0]) & (luma < self.luma_range[1])
        )
        if int(mask.sum()) < self.min_skin_samples:
            return None

        rows, cols = np.nonzero(mask)
        ys, xs = rows * step, cols * step
        x0, y0 = int(xs.min()), int(ys.min())
        return FaceRegion(
            x=x0,
            y=y0,
            width=max(1, int(xs.max()) - x0),
            height=max(1, int(ys.max()) - y0),
        )

    @staticmethod
    def to_rgb_array(
        pixels: PixelInput,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> Optional[np.ndarray]:
        """Normalise any supported pixel container to a float ``H x W x 3`` array."""
        if isinstance(pixels, (str, Path)):
            try:
                with Image.open(pixels) as image:
                    return np.asarray(image.convert("RGB"), dtype=np.float64)
            except (OSError, UnidentifiedImageError) as e:
                logger.debug("Unreadable image %s (%s)", pixels, e)
                return None
        if isinstance(pixels, Image.Image):
            return np.asarray(pixels.convert("RGB"), dtype=np.float64)

        if isinstance(pixels, (bytes, bytearray, memoryview)):
            arr = np.frombuffer(pixels, dtype=np.uint8)
        elif isinstance(pixels, np.ndarray):
            arr = pixels
        else:
            raise TypeError(f"Expected ndarray, bytes, PIL Image or path, got {type(pixels)}")

        if arr.ndim == 3 and arr.shape[2] in (3, 4) and arr.shape[0] > 0 and arr.shape[1] > 0:
            return arr[..., :3].astype(np.float64)

        if arr.ndim == 1 and width and height and width > 0 and height > 0:
            n_pixels = width * height
            channels, leftover = divmod(arr.size, n_pixels)
            if leftover == 0 and channels in (3, 4):
                return arr.reshape(height, width, channels)[..., :3].astype(np.float64)

        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _region_brightness(self, gray: np.ndarray, x: int, y: int, w: int, h: int) -> float:
        if h <= 0 or w <= 0:
            return 0.0
        s = self.brightness_step
        patch = gray[y:y + h:s, x:x + w:s]
        if patch.size == 0:
            return 0.0
        return float(patch.mean()) / 255.0

    def _edge_density(self, gray: np.ndarray, region: FaceRegion) -> float:
        img_h, img_w = gray.shape
        s = self.edge_step
        xs, ys = max(region.x + 1, 1), max(region.y + 1, 1)
        xe = min(region.x + region.width - 1, img_w - 2)
        ye = min(region.y + region.height - 1, img_h - 2)
        if xe <= xs or ye <= ys:
            return 0.0

        centre = gray[ys:ye:s, xs:xe:s]
        right = gray[ys:ye:s, xs + 1:xe + 1:s]
        below = gray[ys + 1:ye + 1:s, xs:xe:s]
        gradient = np.abs(centre - right) + np.abs(centre - below)
        return float((gradient > self.edge_threshold).mean())

    def _color_variance(self, gray: np.ndarray, region: FaceRegion) -> float:
        s = self.edge_step
        patch = gray[region.y:region.y + region.height:s, region.x:region.x + region.width:s]
        if patch.size == 0:
            return 0.0
        return float(patch.std()) / 255.0
