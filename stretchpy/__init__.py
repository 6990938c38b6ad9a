import os

# Numba's default TBB layer refuses to fork from non-main threads
os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")
# OpenCV only exposes the EXR codec when this is set before import
os.environ.setdefault("OPENCV_IO_ENABLE_OPENEXR", "1")

__version__ = "0.1.0"
