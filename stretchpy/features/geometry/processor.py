from stretchpy.domain.interfaces import IProcessor
from stretchpy.domain.models import Settings
from stretchpy.features.geometry.logic import (
    apply_fine_rotation,
    apply_orientation,
    get_fractional_crop_coords,
    get_scaled_dimensions,
    resize_image,
)
from stretchpy.features.geometry.models import TransformConfig
from stretchpy.kernel.image.buffer import PixelBuffer


class TransformProcessor(IProcessor):
    """
    Applies source orientation and 90 degree user rotation.
    """

    name = "transform"

    def __init__(self, config: TransformConfig):
        self.config = config

    def process(self, buffer: PixelBuffer, settings: Settings) -> PixelBuffer:
        turns, flip = self.config.orientation.decompose()
        turns = (turns + settings.rotation.quarter_turns) % 4
        if turns == 0 and not flip:
            return buffer
        return PixelBuffer.wrap(apply_orientation(buffer.data, turns, flip))


class RotateCropProcessor(IProcessor):
    """
    Fine rotation followed by a crop expressed as fractions of each edge.
    """

    name = "rotatecrop"

    def process(self, buffer: PixelBuffer, settings: Settings) -> PixelBuffer:
        y1, y2, x1, x2 = get_fractional_crop_coords(
            buffer.height,
            buffer.width,
            settings.rotate_crop_top,
            settings.rotate_crop_bottom,
            settings.rotate_crop_left,
            settings.rotate_crop_right,
            stage=self.name,
        )

        if settings.rotate_crop_angle == 0.0 and (y1, y2, x1, x2) == (
            0,
            buffer.height,
            0,
            buffer.width,
        ):
            return buffer

        img = apply_fine_rotation(
            buffer.data, settings.rotate_crop_angle, fast=settings.use_fastpath
        )
        return PixelBuffer(img[y1:y2, x1:x2])


class ResizeProcessor(IProcessor):
    """
    Fits the finished frame into max_width/max_height. Never upscales.
    """

    name = "resize"

    def process(self, buffer: PixelBuffer, settings: Settings) -> PixelBuffer:
        h, w = get_scaled_dimensions(
            buffer.height, buffer.width, settings.max_width, settings.max_height
        )
        if (h, w) == (buffer.height, buffer.width):
            return buffer
        return PixelBuffer.wrap(resize_image(buffer.data, h, w, fast=settings.use_fastpath))
