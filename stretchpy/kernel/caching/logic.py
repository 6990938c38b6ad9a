import hashlib
import json
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any
from stretchpy.kernel.image.buffer import PixelBuffer


@dataclass(frozen=True)
class CacheEntry:
    """
    Represents a cached intermediate processing result.
    """

    config_hash: str
    data: PixelBuffer


def _default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    return str(obj)


def calculate_config_hash(*configs: Any) -> str:
    """
    Calculates a stable MD5 hash over dataclass configurations and plain values.
    Keys are sorted to ensure consistency.
    """
    data = []
    for config in configs:
        if hasattr(config, "__dataclass_fields__"):
            data.append(asdict(config))
        else:
            data.append(config)

    serialized = json.dumps(data, sort_keys=True, default=_default)
    return hashlib.md5(serialized.encode("utf-8")).hexdigest()
