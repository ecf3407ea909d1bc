import io
import os
import random

import numpy as np
import pytest
from PIL import Image

# main.py reads these at import time
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("S3_BUCKET", "test-bucket")


class MidpointRandom(random.Random):
    """random() always returns 0.5, so every jitter offset is zero."""

    def random(self):
        return 0.5


@pytest.fixture
def still_rng():
    return MidpointRandom()


def solid_buffer(w, h, rgba):
    arr = np.zeros((h, w, 4), dtype=np.uint8)
    arr[:, :] = rgba
    return arr


def png_bytes(w, h, rgba):
    buf = io.BytesIO()
    Image.new("RGBA", (w, h), rgba).save(buf, format="PNG")
    return buf.getvalue()
