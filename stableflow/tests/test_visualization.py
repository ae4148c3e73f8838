import io
import pytest
import numpy as np
from PIL import Image as PILImage
import imageio.v3 as iio

from stableflow.core.numerics.grid import create_grid
from stableflow.visualization.image import (
    Image, rgba, rgb, get_alpha, get_red, get_green, get_blue, blend_color,
    clear, load_rgba, load_image_file, image_scale, center, blit, alpha_to_grid
)
from stableflow.visualization.renderer import RenderConfig, Renderer, draw_density
from stableflow.visualization.export import (
    RawFrameSink, PngSequenceSink, GifSink, create_sink
)
from stableflow.utils.error_handling import ConfigurationError, ResourceError

class TestColors:
    def test_pack_and_unpack(self):
        color = rgba(0x12, 0x34, 0x56, 0x78)
        assert int(color) == 0x78123456
        assert int(get_alpha(color)) == 0x78
        assert int(get_red(color)) == 0x12
        assert int(get_green(color)) == 0x34
        assert int(get_blue(color)) == 0x56
        assert int(rgb(1, 2, 3)) == 0xff010203

    def test_blend(self):
        black = rgb(0, 0, 0)
        assert int(blend_color(black, rgb(255, 255, 255))) == 0xffffffff
        assert int(blend_color(black, rgba(255, 255, 255, 0))) == 0xff000000
        half = blend_color(black, rgba(255, 255, 255, 128))
        assert int(get_red(half)) == 128
        assert int(get_alpha(half)) == 255

class TestImage:
    def test_stride_and_pixels(self):
        image = Image(3, 2, stride=4)
        image.set_pixel(2, 1, 0xff00ff00)
        assert image.buffer[2 + 4] == 0xff00ff00
        assert image.pixel(2, 1) == 0xff00ff00
        assert image.pixels.shape == (2, 3)
        assert image.pixel_count == 6
        assert len(image.tobytes()) == 6 * 4

    def test_bytes_are_bgra(self):
        image = Image(1, 1)
        image.set_pixel(0, 0, int(rgba(1, 2, 3, 4)))
        assert image.tobytes() == bytes([3, 2, 1, 4])
        np.testing.assert_array_equal(image.to_rgba_array()[0, 0], [1, 2, 3, 4])

    def test_invalid_extent(self):
        with pytest.raises(ConfigurationError):
            Image(0, 3)
        with pytest.raises(ConfigurationError):
            Image(4, 3, stride=2)

    def test_load_rgba(self, tmp_path):
        path = tmp_path / "obstacle.bgra"
        expected = np.array([0xff000000, 0x80ffffff, 0x00000000, 0x01020304], dtype="<u4")
        expected.tofile(path)

        image = load_rgba(str(path), 2, 2)
        np.testing.assert_array_equal(image.pixels.ravel(), expected)
        np.testing.assert_array_equal(image.alpha_channel(), [[255.0, 128.0], [0.0, 1.0]])

    def test_load_rgba_errors(self, tmp_path):
        with pytest.raises(ResourceError):
            load_rgba(str(tmp_path / "missing.bgra"), 2, 2)

        short = tmp_path / "short.bgra"
        short.write_bytes(b"\x00" * 12)
        with pytest.raises(ConfigurationError):
            load_rgba(str(short), 2, 2)

    def test_load_image_file(self, tmp_path):
        array = np.zeros((3, 5, 4), dtype=np.uint8)
        array[1, 2] = [10, 20, 30, 255]
        path = tmp_path / "obstacle.png"
        PILImage.fromarray(array).save(path)

        image = load_image_file(str(path))
        assert image.resolution == (5, 3)
        assert image.pixel(2, 1) == int(rgba(10, 20, 30, 255))
        assert image.pixel(0, 0) == 0

        with pytest.raises(ResourceError):
            load_image_file(str(tmp_path / "missing.png"))

    def test_scale_nearest_neighbour(self):
        source = Image(2, 2)
        source.pixels[...] = [[1, 2], [3, 4]]
        target = Image(4, 4)
        image_scale(target, source)
        np.testing.assert_array_equal(
            target.pixels,
            [[1, 1, 2, 2], [1, 1, 2, 2], [3, 3, 4, 4], [3, 3, 4, 4]]
        )

        small = Image(1, 1)
        image_scale(small, target)
        assert small.pixel(0, 0) == 1

    def test_center_and_blit(self):
        target = Image(6, 4)
        clear(target, 0xff000000)
        source = Image(2, 2)
        clear(source, 0xffffffff)

        position = center(target.resolution, source.resolution)
        assert position == (2, 1)
        blit(target, source, position)
        assert target.pixel(2, 1) == 0xffffffff
        assert target.pixel(3, 2) == 0xffffffff
        assert target.pixel(1, 1) == 0xff000000
        assert target.pixel(4, 2) == 0xff000000

        with pytest.raises(ConfigurationError):
            blit(target, source, (5, 0))

    def test_alpha_to_grid(self):
        image = Image(2, 1)
        image.pixels[...] = [0x7f000000, 0xff000000]
        grid = create_grid(3, 3)
        alpha_to_grid(image, grid)
        np.testing.assert_array_equal(grid.data[0], [127.0, 255.0, 0.0])
        with pytest.raises(ConfigurationError):
            alpha_to_grid(Image(4, 1), grid)

class TestRenderer:
    def test_draw_density_clamps(self):
        dens = create_grid(5, 1)
        dens.data[0] = [-1.0, 0.0, 0.5, 2.0, np.nan]
        image = Image(5, 1)
        draw_density(image, dens)
        assert [int(get_red(p)) for p in image.pixels[0]] == [0, 0, 127, 255, 0]
        assert all(int(get_alpha(p)) == 255 for p in image.pixels[0])

    def test_render_fills_screen(self):
        dens = create_grid(6, 6)
        dens.fill(1.0)
        renderer = Renderer(RenderConfig(screen_width=8, screen_height=4), 4)
        screen = renderer.render(dens)
        assert screen.resolution == (8, 4)
        assert np.all(screen.pixels == 0xffffffff)

    def test_render_with_overlay(self):
        dens = create_grid(6, 6)
        overlay = Image(2, 2)
        clear(overlay, 0xffff0000)
        renderer = Renderer(RenderConfig(screen_width=8, screen_height=4), 4)
        screen = renderer.render(dens, overlay)
        assert screen.pixel(3, 1) == 0xffff0000
        assert screen.pixel(0, 0) == 0xff000000

    def test_invalid_render_config(self):
        with pytest.raises(ConfigurationError):
            RenderConfig(screen_width=0)
        with pytest.raises(ConfigurationError):
            RenderConfig(low=1.0, high=1.0)

class TestSinks:
    def frame(self):
        image = Image(4, 3)
        clear(image, 0xff336699)
        return image

    def test_raw_sink(self):
        stream = io.BytesIO()
        with RawFrameSink(stream) as sink:
            sink.write(self.frame())
            sink.write(self.frame())
        assert sink.frames_written == 2
        data = stream.getvalue()
        assert len(data) == 2 * 4 * 3 * 4
        assert data[:4] == bytes([0x99, 0x66, 0x33, 0xff])

    def test_png_sink(self, tmp_path):
        with PngSequenceSink(str(tmp_path / "frames")) as sink:
            sink.write(self.frame())
        path = tmp_path / "frames" / "frame_000000.png"
        assert path.exists()
        with PILImage.open(path) as img:
            assert img.size == (4, 3)
            assert img.convert("RGBA").getpixel((0, 0)) == (0x33, 0x66, 0x99, 0xff)

    def test_gif_sink(self, tmp_path):
        path = tmp_path / "density.gif"
        image = self.frame()
        with GifSink(str(path), fps=10) as sink:
            sink.write(image)
            clear(image, 0xffffffff)
            sink.write(image)
        assert sink.frames_written == 2
        assert sink.frames == []
        frames = iio.imread(path, index=None)
        assert frames.shape[0] == 2

    def test_create_sink(self, tmp_path):
        stream = io.BytesIO()
        assert isinstance(create_sink("raw", stream=stream), RawFrameSink)
        assert isinstance(create_sink("png", str(tmp_path)), PngSequenceSink)
        assert isinstance(create_sink("gif", str(tmp_path)), GifSink)
        with pytest.raises(ConfigurationError):
            create_sink("mp4", str(tmp_path))
