import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"

# Add both src and repo root to path for imports
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def moving_spot_frames():
    """Ten frames with a 4x4 white square moving 3 px right per frame."""
    from tests.helpers.fakes import frame_with_square

    return [frame_with_square(5 + 3 * i, 20, 4) for i in range(10)]


@pytest.fixture
def spot_video(tmp_path):
    """
    Ten-frame 160x120 MJPG clip at 10 fps: a 12x12 white square on black,
    top-left at (20 + 10 * i, 50) in frame i.
    """
    import cv2
    import numpy as np

    path = tmp_path / "spot.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (160, 120))
    if not writer.isOpened():
        pytest.skip("MJPG encoder unavailable in this OpenCV build")
    for i in range(10):
        frame = np.zeros((120, 160, 3), dtype=np.uint8)
        frame[50:62, 20 + 10 * i : 32 + 10 * i] = 255
        writer.write(frame)
    writer.release()
    return path
