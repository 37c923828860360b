"""Image-related helpers."""

from __future__ import annotations

from pathlib import Path

from PIL import Image

from ..errors import UnsupportedInputError


def has_alpha(im: Image.Image) -> bool:
    return im.mode in {"RGBA", "LA"} or (im.mode == "P" and "transparency" in im.info)


def load_source(path: Path) -> Image.Image:
    """Open and fully decode the first frame of an input image."""

    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"input image not found: {path}")
    try:
        with Image.open(path) as im:
            im.load()
            # Keep alpha, normalize exotic modes (CMYK, I;16, ...) to RGB(A).
            if has_alpha(im):
                return im.convert("RGBA")
            if im.mode in {"RGB", "L"}:
                return im.copy()
            return im.convert("RGB")
    # UnidentifiedImageError and truncated-data errors are OSError subclasses;
    # some corrupt headers surface as SyntaxError.
    except (OSError, SyntaxError, Image.DecompressionBombError) as e:
        raise UnsupportedInputError(f"cannot decode input image {path.name}: {e}") from e


def flatten_to_rgb(
    im: Image.Image, *, background_rgb: tuple[int, int, int] = (255, 255, 255)
) -> Image.Image:
    """Return an RGB copy of im with alpha composited onto background_rgb."""

    if has_alpha(im):
        bg = Image.new("RGBA", im.size, tuple(background_rgb) + (255,))
        rgba = im.convert("RGBA")
        return Image.alpha_composite(bg, rgba).convert("RGB")
    if im.mode == "RGB":
        return im
    return im.convert("RGB")


def contain_square(im: Image.Image, size: int) -> Image.Image:
    """Fit im inside a size x size transparent canvas, centred, keeping aspect ratio."""

    rgba = im.convert("RGBA")
    w, h = rgba.size
    scale = min(size / w, size / h)
    new_w = max(1, round(w * scale))
    new_h = max(1, round(h * scale))
    resized = rgba.resize((new_w, new_h), Image.Resampling.LANCZOS)

    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    canvas.paste(resized, ((size - new_w) // 2, (size - new_h) // 2))
    return canvas
