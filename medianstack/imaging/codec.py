"""Converts between image files and FrameGrids.

Decoding produces the 16-bit alpha-premultiplied native representation first
and then narrows it with the same truncating rule as PixelSample.from_native,
so every frame lands on an identical 8-bit scale regardless of source format.
"""

import logging
import os
import stat
import tempfile
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Optional, Union

import numpy as np
from PIL import Image

from medianstack.errors import DecodeError, EncodeError, UnknownFormatError
from medianstack.imaging.jpeg import decode_jpeg_rgb
from medianstack.models import FrameGrid, ImageFormat, NATIVE_SCALE, native_to_samples

log = logging.getLogger(__name__)

Source = Union[str, os.PathLike, BinaryIO]

_DECODE_ERRORS = (OSError, ValueError, SyntaxError, Image.DecompressionBombError)


def _identifier_name(identifier) -> Optional[str]:
    if isinstance(identifier, (str, os.PathLike)):
        return os.fspath(identifier)
    name = getattr(identifier, "name", None)
    return name if isinstance(name, str) else None


def _is_path(identifier) -> bool:
    return isinstance(identifier, (str, os.PathLike))


def resolve_format(identifier: Source) -> ImageFormat:
    """Resolves the image format from a path or a named stream's extension."""
    name = _identifier_name(identifier)
    fmt = ImageFormat.from_extension(Path(name).suffix) if name else None
    if fmt is None:
        raise UnknownFormatError(name if name is not None else identifier)
    return fmt


def to_native(rgba: np.ndarray) -> np.ndarray:
    """Widens 8-bit straight-alpha RGBA to 16-bit alpha-premultiplied values."""
    rgba = rgba.astype(np.uint32)
    alpha = rgba[..., 3:4]
    native = np.empty_like(rgba)
    native[..., :3] = rgba[..., :3] * NATIVE_SCALE * alpha // 255
    native[..., 3:] = alpha * NATIVE_SCALE
    return native


def _native_from_image(img: Image.Image) -> np.ndarray:
    if img.mode == "I" or img.mode.startswith("I;16"):
        # 16-bit greyscale keeps its full range until the final narrowing
        grey = np.clip(np.asarray(img).astype(np.int64), 0, 65535).astype(np.uint32)
        native = np.empty(grey.shape + (4,), dtype=np.uint32)
        native[..., :3] = grey[..., None]
        native[..., 3] = 65535
        return native
    return to_native(np.asarray(img.convert("RGBA")))


def _read_bytes(source: Source) -> bytes:
    if _is_path(source):
        return Path(source).read_bytes()
    return source.read()


def decode_frame(source: Source, fmt: Optional[ImageFormat] = None) -> FrameGrid:
    """Decodes a path or binary stream into a FrameGrid.

    Raises UnknownFormatError before touching the source if the format cannot
    be resolved, DecodeError if the data cannot be read or parsed.
    """
    fmt = fmt or resolve_format(source)
    label = _identifier_name(source) or repr(source)

    try:
        if fmt is ImageFormat.JPEG:
            rgb = decode_jpeg_rgb(_read_bytes(source))
            if rgb is None:
                raise DecodeError(label, "not a valid JPEG image")
            opaque = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
            native = to_native(np.concatenate([rgb, opaque], axis=2))
        else:
            with Image.open(source, formats=[fmt.value]) as img:
                img.load()
                native = _native_from_image(img)
    except _DECODE_ERRORS as e:
        raise DecodeError(label, str(e)) from e

    frame = FrameGrid.from_array(
        native_to_samples(native),
        source=Path(label) if _is_path(source) else None,
    )
    log.debug("Decoded %s (%dx%d)", label, frame.width, frame.height)
    return frame


def to_image(grid: FrameGrid, fmt: ImageFormat) -> Image.Image:
    """Builds a Pillow image ready to be saved in the given format.

    Samples are alpha-premultiplied. JPEG drops alpha; PNG is written as RGB
    when fully opaque, otherwise as straight-alpha RGBA.
    """
    pixels = grid.pixels
    rgb = np.ascontiguousarray(pixels[..., :3])
    if fmt is ImageFormat.JPEG:
        return Image.fromarray(rgb)

    alpha = pixels[..., 3]
    if np.all(alpha == 255):
        return Image.fromarray(rgb)

    a = alpha.astype(np.uint32)[..., None]
    straight = np.where(
        a > 0,
        np.minimum(rgb.astype(np.uint32) * 255 // np.maximum(a, 1), 255),
        0,
    ).astype(np.uint8)
    return Image.fromarray(np.concatenate([straight, alpha[..., None]], axis=2))


def _output_mode(path: Path) -> int:
    """Permissions for a written sink: the existing file's mode, else 0666 minus umask."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def encode_frame(
    grid: FrameGrid,
    sink: Source,
    fmt: Optional[ImageFormat] = None,
    jpeg_quality: int = 75,
):
    """Encodes a FrameGrid to a path or binary stream.

    Paths are written through a temporary file in the same directory and
    swapped in with os.replace, so a failed encode never leaves a partial
    file at the sink.
    """
    fmt = fmt or resolve_format(sink)
    label = _identifier_name(sink) or repr(sink)
    img = to_image(grid, fmt)
    save_kwargs = {"quality": jpeg_quality} if fmt is ImageFormat.JPEG else {}

    if not _is_path(sink):
        buf = BytesIO()
        try:
            img.save(buf, format=fmt.value, **save_kwargs)
            sink.write(buf.getvalue())
        except (OSError, ValueError) as e:
            raise EncodeError(label, str(e)) from e
        log.info("Wrote %s image (%dx%d) to stream", fmt.value, grid.width, grid.height)
        return

    path = Path(sink)
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            "wb", delete=False, dir=path.parent, prefix=f".{path.stem}-", suffix=path.suffix
        ) as tmp:
            tmp_path = Path(tmp.name)
            img.save(tmp, format=fmt.value, **save_kwargs)
        # NamedTemporaryFile creates 0600; give the result normal file permissions
        os.chmod(tmp_path, _output_mode(path))
        os.replace(tmp_path, path)
    except (OSError, ValueError) as e:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise EncodeError(label, str(e)) from e
    log.info("Wrote %s image (%dx%d) to %s", fmt.value, grid.width, grid.height, path)
