import numpy as np
from stretchpy.domain.errors import DecodeFailureError
from stretchpy.domain.interfaces import ISourceProcessor
from stretchpy.domain.models import GenericImage, RawSensorData, Settings, Source
from stretchpy.features.gofloat.logic import generic_to_float, raw_to_float
from stretchpy.kernel.image.buffer import PixelBuffer
from stretchpy.kernel.system.performance import time_function


class GoFloatProcessor(ISourceProcessor):
    """
    Entry stage: source samples -> normalized float32, integer crop applied.
    """

    name = "gofloat"

    @time_function
    def process(self, source: Source, settings: Settings) -> PixelBuffer:
        if isinstance(source, RawSensorData):
            data = raw_to_float(source, settings)
        elif isinstance(source, GenericImage):
            data = generic_to_float(source, settings)
        else:
            raise DecodeFailureError(f"Unknown source type {type(source).__name__}")

        # Never freeze or alias the caller's own array
        shared = np.shares_memory(data, source.data)
        return PixelBuffer(data, copy=shared)
