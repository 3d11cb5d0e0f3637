# src/poselog/geometry/aspect_fill.py
# ---------------------------------------------------------------
# Aspect-fill ("cover") transform between video pixels and the
# display canvas: the video is scaled to cover the whole display
# while keeping its aspect ratio, and centred, cropping the excess.
# ---------------------------------------------------------------

from dataclasses import dataclass
from typing import Tuple

import numpy as np

Size = Tuple[int, int]      # (width, height)
Point = Tuple[float, float]


@dataclass(frozen=True)
class AspectFill:
    scale: float
    offset_x: float
    offset_y: float

    @classmethod
    def between(cls, video_size: Size, display_size: Size) -> "AspectFill":
        vw, vh = video_size
        dw, dh = display_size
        if vw <= 0 or vh <= 0 or dw <= 0 or dh <= 0:
            raise ValueError(f"sizes must be positive, got video={video_size} display={display_size}")
        scale = max(dw / vw, dh / vh)
        return cls(
            scale=scale,
            offset_x=(dw - vw * scale) / 2.0,
            offset_y=(dh - vh * scale) / 2.0,
        )

    def to_display(self, point: Point) -> Point:
        return (point[0] * self.scale + self.offset_x,
                point[1] * self.scale + self.offset_y)

    def to_video(self, point: Point) -> Point:
        return ((point[0] - self.offset_x) / self.scale,
                (point[1] - self.offset_y) / self.scale)

    def affine(self) -> np.ndarray:
        """2x3 matrix for cv2.warpAffine producing the filled display image."""
        return np.array([[self.scale, 0.0, self.offset_x],
                         [0.0, self.scale, self.offset_y]], dtype=np.float32)


def map_to_display(point: Point, video_size: Size, display_size: Size) -> Point:
    return AspectFill.between(video_size, display_size).to_display(point)
