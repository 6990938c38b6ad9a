from dataclasses import asdict, dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple
import numba  # type: ignore
import numpy as np
from stretchpy.domain.errors import DecodeFailureError, OperatorError, StretchPyError
from stretchpy.domain.models import GenericImage, QuantizedImage, RawSensorData, Settings, Source
from stretchpy.features.color.models import ColorConfig
from stretchpy.features.color.processor import FromLabProcessor, ToLabProcessor
from stretchpy.features.curves.models import BaseCurveConfig
from stretchpy.features.curves.processor import BaseCurveProcessor
from stretchpy.features.demosaic.processor import DemosaicConfig, DemosaicProcessor
from stretchpy.features.geometry.models import TransformConfig
from stretchpy.features.geometry.processor import (
    ResizeProcessor,
    RotateCropProcessor,
    TransformProcessor,
)
from stretchpy.features.gofloat.processor import GoFloatProcessor
from stretchpy.kernel.caching.logic import calculate_config_hash
from stretchpy.kernel.caching.manager import PipelineCache
from stretchpy.kernel.image.buffer import PixelBuffer
from stretchpy.kernel.image.logic import float_to_uint16, float_to_uint8
from stretchpy.kernel.system.config import APP_CONFIG
from stretchpy.kernel.system.logging import get_logger

logger = get_logger(__name__)

numba.set_num_threads(max(1, min(APP_CONFIG.max_workers, numba.config.NUMBA_NUM_THREADS)))


@dataclass(frozen=True)
class OpsConfig:
    """
    Per-operator parameters. Defaults come from the source.
    """

    demosaic: DemosaicConfig = field(default_factory=DemosaicConfig)
    color: ColorConfig = field(default_factory=ColorConfig)
    basecurve: BaseCurveConfig = field(default_factory=BaseCurveConfig)
    transform: TransformConfig = field(default_factory=TransformConfig)

    @classmethod
    def for_source(cls, source: Source) -> "OpsConfig":
        return cls(
            demosaic=DemosaicConfig.for_source(source),
            color=ColorConfig.for_source(source),
            basecurve=BaseCurveConfig.for_source(source),
            transform=TransformConfig.for_source(source),
        )


@dataclass(frozen=True)
class _Stage:
    name: str
    run: Callable[[PixelBuffer, Settings], PixelBuffer]
    config: Any
    settings_fields: Tuple[str, ...]


def preview_settings(settings: Settings, size: Optional[int] = None) -> Settings:
    """
    Fast path variant of `settings` bounded to the preview render size.
    Explicit bounds that are already tighter are kept.
    """
    bound = size or APP_CONFIG.preview_render_size
    max_w = min(settings.max_width, bound) if settings.max_width else bound
    max_h = min(settings.max_height, bound) if settings.max_height else bound
    return replace(settings, use_fastpath=True, max_width=max_w, max_height=max_h)


class Pipeline:
    """
    Runs the fixed operator chain over one Source with stage-level memoization.

    Order: gofloat -> demosaic -> tolab -> basecurve -> transform -> rotatecrop
    -> fromlab -> resize. Curve and color stages see un-rotated data; the
    resize bound applies to the final (rotated, cropped) frame.
    """

    def __init__(
        self,
        source: Source,
        settings: Optional[Settings] = None,
        ops: Optional[OpsConfig] = None,
        cache: Optional[PipelineCache] = None,
    ) -> None:
        self.source = source
        self.settings = settings if settings is not None else Settings()
        self.ops = ops if ops is not None else OpsConfig.for_source(source)
        self.cache = cache if cache is not None else PipelineCache(enabled=APP_CONFIG.cache_enabled)

    @classmethod
    def new_from_source(cls, source: Source) -> "Pipeline":
        if not isinstance(source, (RawSensorData, GenericImage)):
            raise DecodeFailureError(f"Unsupported source type {type(source).__name__}")
        source.validate()

        logger.info(
            f"Pipeline created for {type(source).__name__} "
            f"{source.width}x{source.height}"
        )
        return cls(source)

    def _stages(self) -> List[_Stage]:
        return [
            _Stage("demosaic", DemosaicProcessor(self.ops.demosaic).process, self.ops.demosaic, ("use_fastpath",)),
            _Stage("tolab", ToLabProcessor(self.ops.color).process, self.ops.color, ()),
            _Stage("basecurve", BaseCurveProcessor(self.ops.basecurve).process, self.ops.basecurve, ()),
            _Stage("transform", TransformProcessor(self.ops.transform).process, self.ops.transform, ("rotation",)),
            _Stage(
                "rotatecrop",
                RotateCropProcessor().process,
                None,
                (
                    "use_fastpath",
                    "rotate_crop_angle",
                    "rotate_crop_top",
                    "rotate_crop_bottom",
                    "rotate_crop_left",
                    "rotate_crop_right",
                ),
            ),
            _Stage("fromlab", FromLabProcessor().process, None, ()),
            _Stage("resize", ResizeProcessor().process, None, ("max_width", "max_height", "use_fastpath")),
        ]

    def _execute(self, name: str, fn: Callable[..., PixelBuffer], *args: Any) -> PixelBuffer:
        try:
            return fn(*args)
        except StretchPyError as e:
            if e.stage == e.default_stage:
                e.stage = name
            logger.error(f"Stage '{e.stage}' failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Stage '{name}' failed unexpectedly: {e}")
            raise OperatorError(f"{type(e).__name__}: {e}", stage=name) from e

    def run(self, settings: Optional[Settings] = None) -> PixelBuffer:
        """
        Executes the full chain. Unchanged stages are served from the cache.
        Output samples are display-encoded RGB, not yet clamped.
        """
        if settings is None:
            settings = self.settings
        settings_dict: Dict[str, Any] = asdict(settings)

        def subset(fields: Tuple[str, ...]) -> Dict[str, Any]:
            return {f: settings_dict[f] for f in fields}

        key = calculate_config_hash(
            self.source.fingerprint,
            "gofloat",
            subset(("crop_top", "crop_bottom", "crop_left", "crop_right")),
        )
        current = self.cache.get("gofloat", key)
        if current is None:
            current = self._execute("gofloat", GoFloatProcessor().process, self.source, settings)
            self.cache.store("gofloat", key, current)

        for stage in self._stages():
            key = calculate_config_hash(key, stage.name, stage.config, subset(stage.settings_fields))
            cached = self.cache.get(stage.name, key)
            if cached is not None:
                logger.debug(f"Stage '{stage.name}' served from cache")
                current = cached
                continue

            current = self._execute(stage.name, stage.run, current, settings)
            self.cache.store(stage.name, key, current)

        return current

    def output_float(self, settings: Optional[Settings] = None) -> PixelBuffer:
        """
        Finished buffer clamped to 0.0 - 1.0.
        """
        data = np.clip(self.run(settings).data, 0.0, 1.0)
        return PixelBuffer.wrap(data)

    def _quantize(
        self,
        settings: Optional[Settings],
        bit_depth: int,
        convert: Callable[[np.ndarray], np.ndarray],
    ) -> QuantizedImage:
        buffer = self.run(settings)
        return QuantizedImage(
            width=buffer.width,
            height=buffer.height,
            channels=buffer.channels,
            bit_depth=bit_depth,
            data=convert(buffer.data),
        )

    def output_8bit(self, settings: Optional[Settings] = None) -> QuantizedImage:
        return self._quantize(settings, 8, float_to_uint8)

    def output_16bit(self, settings: Optional[Settings] = None) -> QuantizedImage:
        return self._quantize(settings, 16, float_to_uint16)
