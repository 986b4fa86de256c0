"""JPEG decoding using PyTurboJPEG with a Pillow fallback."""

import logging
from io import BytesIO
from typing import Optional

import numpy as np
from PIL import Image

log = logging.getLogger(__name__)

# Attempt to import PyTurboJPEG

try:
    from turbojpeg import TurboJPEG, TJPF_RGB
except ImportError:
    jpeg_decoder = None
    TURBO_AVAILABLE = False
    log.warning("PyTurboJPEG not found. Falling back to Pillow for JPEG decoding.")
else:
    try:
        jpeg_decoder = TurboJPEG()
    except Exception:
        jpeg_decoder = None
        TURBO_AVAILABLE = False
        log.warning("PyTurboJPEG initialization failed. Falling back to Pillow.")
    else:
        TURBO_AVAILABLE = True
        log.info("PyTurboJPEG is available. Using it for JPEG decoding.")


def decode_jpeg_rgb(jpeg_bytes: bytes) -> Optional[np.ndarray]:
    """Decodes JPEG bytes into an (height, width, 3) uint8 RGB array.

    Returns None if neither decoder can parse the data.
    """
    if TURBO_AVAILABLE and jpeg_decoder:
        try:
            # flags=0: accurate DCT so every frame decodes identically
            return jpeg_decoder.decode(jpeg_bytes, pixel_format=TJPF_RGB, flags=0)
        except Exception as e:
            log.debug(f"PyTurboJPEG failed to decode image: {e}. Trying Pillow.")

    try:
        with Image.open(BytesIO(jpeg_bytes), formats=["JPEG"]) as img:
            return np.array(img.convert("RGB"))
    except (OSError, ValueError, SyntaxError) as e:
        log.error(f"Pillow also failed to decode image: {e}")
        return None
