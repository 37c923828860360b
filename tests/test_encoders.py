from __future__ import annotations

import io

import pytest
from PIL import Image, features

from conftest import make_image

from imgfit.codecs import Codec
from imgfit.config import ConvertConfig
from imgfit.encoders import EncoderFactory, register_encoder
from imgfit.encoders.base import ImageEncoder
from imgfit.errors import EncodeError, EncoderUnavailableError


@pytest.fixture(scope="module")
def factory() -> EncoderFactory:
    return EncoderFactory()


@pytest.fixture
def photo(tmp_path) -> Image.Image:
    with Image.open(make_image(tmp_path / "photo.png", size=(160, 120))) as im:
        im.load()
        return im.copy()


def test_core_codecs_available(factory):
    for codec in (Codec.PNG, Codec.JPEG, Codec.GIF, Codec.ICO):
        assert factory.is_available(codec)


def test_factory_returns_fresh_instances(factory):
    a = factory.get_encoder(Codec.PNG)
    b = factory.get_encoder(Codec.PNG)
    assert a is not b
    assert a.codec is Codec.PNG


def test_jpeg_size_grows_with_quality(factory, photo):
    enc = factory.get_encoder(Codec.JPEG)
    sizes = [len(enc.encode(photo, q)) for q in (20, 50, 80, 95)]
    assert sizes == sorted(sizes)


def test_webp_output(factory, photo):
    if not factory.is_available(Codec.WEBP):
        pytest.skip("Pillow built without WebP")
    data = factory.get_encoder(Codec.WEBP).encode(photo, 60)
    assert data[:4] == b"RIFF" and data[8:12] == b"WEBP"


@pytest.mark.skipif(not features.check("avif"), reason="Pillow built without AVIF")
def test_avif_output(factory, photo):
    data = factory.get_encoder(Codec.AVIF).encode(photo, 50)
    with Image.open(io.BytesIO(data)) as im:
        assert im.format == "AVIF"


def test_lossless_encoders_ignore_quality(factory, photo):
    enc = factory.get_encoder(Codec.PNG)
    assert enc.encode(photo, 10) == enc.encode(photo, 90)


def test_ico_respects_configured_sizes(photo):
    enc = EncoderFactory(ConvertConfig(icon_sizes=(16, 32, 300))).get_encoder(Codec.ICO)

    with Image.open(io.BytesIO(enc.encode(photo))) as im:
        assert set(im.info["sizes"]) == {(16, 16), (32, 32)}


def test_ico_without_usable_sizes_fails(photo):
    enc = EncoderFactory(ConvertConfig(icon_sizes=(512,))).get_encoder(Codec.ICO)

    with pytest.raises(EncodeError):
        enc.encode(photo)


def test_pillow_failures_become_encode_errors(photo):
    class Broken(ImageEncoder):
        codec = Codec.WEBP

        def render(self, source, quality, out):
            raise ValueError("bad option")

    with pytest.raises(EncodeError) as exc:
        Broken().encode(photo, 33)

    assert exc.value.codec is Codec.WEBP
    assert exc.value.quality == 33
    assert isinstance(exc.value.__cause__, ValueError)


def test_empty_output_is_an_error(photo):
    class Silent(ImageEncoder):
        codec = Codec.PNG

        def render(self, source, quality, out):
            pass

    with pytest.raises(EncodeError, match="no output"):
        Silent().encode(photo)


def test_register_rejects_duplicates_and_missing_codec():
    EncoderFactory()  # makes sure the built-in plugins are registered

    class Again(ImageEncoder):
        codec = Codec.PNG

        def render(self, source, quality, out):
            pass

    class Nameless(ImageEncoder):
        def render(self, source, quality, out):
            pass

    with pytest.raises(ValueError, match="Duplicate"):
        register_encoder(Again)
    with pytest.raises(ValueError):
        register_encoder(Nameless)


def test_unavailable_codec_raises(factory, monkeypatch):
    monkeypatch.setattr(factory, "_available", {})
    with pytest.raises(EncoderUnavailableError):
        factory.get_encoder(Codec.JPEG)
