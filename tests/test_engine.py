"""Tests for RenderEngine, GradeProgram and the device helpers (CPU device)."""

import io

import numpy as np
import pytest
import torch
from PIL import Image

from cinegrade import (
    DEFAULT_CATALOG,
    DrawingSurface,
    EngineConfig,
    EngineState,
    ParameterSet,
    RenderEngine,
    Surface,
    render_frame,
    rgb_to_hsl,
)
from cinegrade.engine import DeviceContext, GradeProgram
from cinegrade.engine import program as program_module
from cinegrade.errors import (
    ContextLostError,
    EmptyFrameError,
    EngineStateError,
    InitializationError,
)
from cinegrade.imaging import to_rgba_uint8


@pytest.fixture
def config():
    """CPU engine configuration."""
    return EngineConfig(device="cpu")


@pytest.fixture
def sample_image():
    """Random RGBA uint8 image (24 rows x 32 columns)."""
    rng = np.random.default_rng(42)
    pixels = rng.integers(0, 256, size=(24, 32, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return pixels


@pytest.fixture
def surface(sample_image):
    """Surface matching the sample image."""
    return Surface.for_image(sample_image)


@pytest.fixture
def engine(surface, config):
    """Initialized CPU engine, disposed after the test."""
    with RenderEngine.create(surface, config) as eng:
        yield eng


class TestEngineConfig:
    """Test configuration validation."""

    def test_defaults(self):
        """Test default configuration."""
        cfg = EngineConfig()

        assert cfg.device == "auto"
        assert cfg.release_cache_on_load
        assert cfg.self_test

    def test_invalid_device(self):
        """Test unknown devices are rejected."""
        with pytest.raises(ValueError, match="Invalid device"):
            EngineConfig(device="tpu")


class TestSurface:
    """Test the drawing surface."""

    def test_protocol(self):
        """Test Surface satisfies DrawingSurface."""
        assert isinstance(Surface(4, 3), DrawingSurface)

    def test_for_image(self, sample_image):
        """Test sizing a surface from a pixel grid."""
        surface = Surface.for_image(sample_image)
        assert (surface.width, surface.height) == (32, 24)

    def test_resize(self):
        """Test resizing in place."""
        surface = Surface(4, 3)
        surface.resize(8, 6)
        assert (surface.width, surface.height) == (8, 6)

    @pytest.mark.parametrize("width,height", [(0, 3), (4, -1)])
    def test_non_positive(self, width, height):
        """Test empty surfaces are rejected."""
        with pytest.raises(ValueError, match="must be positive"):
            Surface(width, height)
        with pytest.raises(ValueError, match="must be positive"):
            Surface(4, 3).resize(width, height)

    def test_non_integer(self):
        """Test sizes must be integers."""
        with pytest.raises(TypeError):
            Surface(4.5, 3)


class TestDeviceContext:
    """Test device resolution."""

    def test_cpu(self):
        """Test CPU is always available."""
        assert DeviceContext.resolve("cpu") == torch.device("cpu")

    def test_auto(self):
        """Test auto resolves to a concrete device."""
        assert DeviceContext.resolve("auto").type in {"cuda", "mps", "cpu"}

    def test_unavailable_cuda(self, monkeypatch):
        """Test an explicit unavailable device fails."""
        monkeypatch.setattr(DeviceContext, "cuda_available", classmethod(lambda cls: False))
        with pytest.raises(InitializationError, match="CUDA"):
            DeviceContext.resolve("cuda")

    def test_auto_falls_back_to_cpu(self, monkeypatch):
        """Test auto picks CPU when no accelerator exists."""
        monkeypatch.setattr(DeviceContext, "cuda_available", classmethod(lambda cls: False))
        monkeypatch.setattr(DeviceContext, "mps_available", classmethod(lambda cls: False))
        assert DeviceContext.resolve("auto") == torch.device("cpu")


class TestLifecycle:
    """Test the UNINITIALIZED -> READY -> DISPOSED state machine."""

    def test_create(self, surface, config):
        """Test create returns a ready engine."""
        engine = RenderEngine.create(surface, config)

        assert engine.state is EngineState.READY
        assert engine.device == torch.device("cpu")
        assert engine.surface is surface
        assert not engine.has_image
        engine.dispose()

    def test_operations_before_initialize(self, sample_image, config):
        """Test every operation requires initialize()."""
        engine = RenderEngine(config)

        assert engine.state is EngineState.UNINITIALIZED
        with pytest.raises(EngineStateError, match="initialize"):
            engine.load_image(sample_image)
        with pytest.raises(EngineStateError):
            engine.render(ParameterSet())
        with pytest.raises(EngineStateError):
            engine.export_snapshot()

    def test_double_initialize(self, engine, surface):
        """Test a ready engine cannot be initialized again."""
        with pytest.raises(EngineStateError):
            engine.initialize(surface)

    def test_initialize_requires_surface(self, config):
        """Test objects without a size are rejected."""
        with pytest.raises(TypeError, match="surface"):
            RenderEngine(config).initialize("canvas")

    def test_custom_surface_object(self, sample_image, config):
        """Test any object with width and height is a valid surface."""

        class Viewport:
            width = 8
            height = 6

        with RenderEngine.create(Viewport(), config) as engine:
            assert engine.load_image(sample_image)
            engine.render(ParameterSet())
            assert engine.read_pixels().shape == (6, 8, 4)

    def test_unavailable_device(self, surface, monkeypatch):
        """Test initialization fails cleanly without the requested device."""
        monkeypatch.setattr(DeviceContext, "cuda_available", classmethod(lambda cls: False))
        engine = RenderEngine(EngineConfig(device="cuda"))

        with pytest.raises(InitializationError):
            engine.initialize(surface)

        assert engine.state is EngineState.UNINITIALIZED
        assert engine.device is None
        assert engine.surface is None

    def test_self_test_failure(self, surface, config, monkeypatch):
        """Test a program that mis-renders the reference texel fails initialization."""
        monkeypatch.setattr(
            GradeProgram, "shade", lambda self, texels, uv, time: torch.zeros_like(texels)
        )
        engine = RenderEngine(config)

        with pytest.raises(InitializationError, match="self-test"):
            engine.initialize(surface)
        assert engine.state is EngineState.UNINITIALIZED

    def test_self_test_can_be_skipped(self, surface, monkeypatch):
        """Test self_test=False skips the startup check."""
        monkeypatch.setattr(
            GradeProgram, "shade", lambda self, texels, uv, time: torch.zeros_like(texels)
        )
        engine = RenderEngine.create(surface, EngineConfig(device="cpu", self_test=False))
        assert engine.state is EngineState.READY
        engine.dispose()

    def test_dispose_idempotent(self, surface, config, sample_image):
        """Test dispose can be called repeatedly and blocks further use."""
        engine = RenderEngine.create(surface, config)
        engine.load_image(sample_image)
        engine.render(ParameterSet())

        engine.dispose()
        engine.dispose()

        assert engine.state is EngineState.DISPOSED
        assert not engine.has_image
        with pytest.raises(EngineStateError, match="disposed"):
            engine.render(ParameterSet())
        with pytest.raises(EngineStateError):
            engine.read_pixels()
        with pytest.raises(EngineStateError):
            engine.initialize(surface)

    def test_context_manager_disposes(self, surface, config):
        """Test leaving the with-block disposes the engine."""
        with RenderEngine.create(surface, config) as engine:
            assert engine.state is EngineState.READY
        assert engine.state is EngineState.DISPOSED


class TestLoadImage:
    """Test texture uploads."""

    def test_load(self, engine, sample_image):
        """Test a pixel grid is accepted."""
        assert engine.load_image(sample_image)
        assert engine.has_image

    def test_load_pil(self, engine, sample_image):
        """Test PIL images are accepted."""
        assert engine.load_image(Image.fromarray(sample_image))

    @pytest.mark.parametrize(
        "source",
        ["photo.jpg", None, np.zeros((4, 4)), np.zeros((4, 4, 4), dtype=np.int64)],
    )
    def test_unsupported_is_noop(self, engine, sample_image, source):
        """Test rejected input returns False and keeps the previous texture."""
        engine.load_image(sample_image)
        engine.render(ParameterSet())
        before = engine.read_pixels()

        assert engine.load_image(source) is False
        assert engine.has_image

        engine.render(ParameterSet())
        np.testing.assert_array_equal(engine.read_pixels(), before)

    def test_replace_texture(self, engine, sample_image):
        """Test a second load fully replaces the first image."""
        engine.load_image(sample_image)
        engine.render(ParameterSet())

        flat = np.full_like(sample_image, 90)
        flat[..., 3] = 255
        engine.load_image(flat)
        engine.render(ParameterSet())

        np.testing.assert_allclose(engine.read_pixels().astype(np.int16), flat, atol=1)


class TestRender:
    """Test frame rendering."""

    def test_render_without_image(self, engine):
        """Test rendering before any load is a no-op."""
        engine.render(ParameterSet())

        assert engine.frame_count == 0
        with pytest.raises(EmptyFrameError):
            engine.read_pixels()

    def test_export_before_render(self, engine, sample_image):
        """Test exporting needs a rendered frame."""
        engine.load_image(sample_image)
        with pytest.raises(EmptyFrameError):
            engine.export_snapshot()

    def test_params_type_checked(self, engine, sample_image):
        """Test render needs a ParameterSet."""
        engine.load_image(sample_image)
        with pytest.raises(TypeError, match="params"):
            engine.render({"exposure": 1.0})

    def test_none_params_rejected(self, engine, sample_image):
        """Test an explicit None is reported as a type error."""
        engine.load_image(sample_image)
        with pytest.raises(TypeError, match="params must be ParameterSet, got NoneType"):
            engine.render(None)
        with pytest.raises(TypeError, match="time must be one of"):
            engine.render(ParameterSet(), time=None)
        assert engine.frame_count == 0

    def test_none_surface_rejected(self, config):
        """Test initialize(None) fails the surface check."""
        engine = RenderEngine(config)
        with pytest.raises(TypeError, match="surface"):
            engine.initialize(None)
        assert engine.state is EngineState.UNINITIALIZED

    def test_identity(self, engine, sample_image):
        """Test the neutral grade reproduces the source."""
        engine.load_image(sample_image)
        engine.render(ParameterSet())

        frame = engine.read_pixels()
        assert frame.shape == (24, 32, 4)
        assert frame.dtype == np.uint8
        np.testing.assert_allclose(frame.astype(np.int16), sample_image, atol=1)
        assert engine.frame_count == 1

    @pytest.mark.parametrize("preset_id", DEFAULT_CATALOG.ids())
    def test_matches_reference(self, engine, sample_image, preset_id):
        """Test the device pass agrees with the CPU reference for every preset."""
        params = DEFAULT_CATALOG.get(preset_id).params.copy()
        params.grain = 0.0

        engine.load_image(sample_image)
        engine.render(params, time=0.0)

        expected = to_rgba_uint8(render_frame(sample_image, params, time=0.0))
        diff = np.abs(engine.read_pixels().astype(np.int16) - expected.astype(np.int16))
        assert diff.max() <= 2

    @pytest.mark.parametrize("threshold", [1e17, -1e17, float("nan")])
    def test_collapsed_threshold_matches_reference(self, engine, sample_image, threshold):
        """Test both implementations treat an unresolvable flash mask as a hard step."""
        params = ParameterSet(flash_strength=1.0, flash_threshold=threshold, background_crush=0.7)

        engine.load_image(sample_image)
        engine.render(params)

        expected = to_rgba_uint8(render_frame(sample_image, params))
        diff = np.abs(engine.read_pixels().astype(np.int16) - expected.astype(np.int16))
        assert diff.max() <= 2

    def test_orientation(self, engine):
        """Test row 0 of the frame is row 0 of the image."""
        image = np.zeros((24, 32, 4), dtype=np.uint8)
        image[:12, :, 0] = 255
        image[12:, :, 2] = 255
        image[..., 3] = 255

        engine.load_image(image)
        engine.render(ParameterSet())
        frame = engine.read_pixels()

        np.testing.assert_array_equal(frame[0, 0], [255, 0, 0, 255])
        np.testing.assert_array_equal(frame[-1, -1], [0, 0, 255, 255])

    def test_deterministic_with_grain(self, engine, sample_image):
        """Test equal (image, params, time) give identical frames."""
        params = DEFAULT_CATALOG.get("vintage_film").params

        engine.load_image(sample_image)
        engine.render(params, time=500.0)
        first = engine.read_pixels()
        engine.render(params, time=500.0)

        np.testing.assert_array_equal(engine.read_pixels(), first)

    def test_surface_resize(self, engine, surface):
        """Test the surface size is read at every render."""
        flat = np.full((24, 32, 4), 140, dtype=np.uint8)
        engine.load_image(flat)

        surface.resize(16, 12)
        engine.render(ParameterSet())
        frame = engine.read_pixels()

        assert frame.shape == (12, 16, 4)
        np.testing.assert_allclose(frame.astype(np.int16), 140, atol=1)

    def test_export_snapshot(self, engine, sample_image):
        """Test snapshots decode to the surface size."""
        engine.load_image(sample_image)
        engine.render(DEFAULT_CATALOG.get("royy_flash").params, time=33.0)

        data = engine.export_snapshot()
        with Image.open(io.BytesIO(data)) as image:
            assert image.format == "PNG"
            assert image.size == (32, 24)
            np.testing.assert_array_equal(np.asarray(image.convert("RGBA")), engine.read_pixels())

    def test_device_failure(self, engine, sample_image, monkeypatch):
        """Test device errors during a pass surface as ContextLostError."""
        engine.load_image(sample_image)

        def broken(self, texels, uv, time):
            raise RuntimeError("device lost")

        monkeypatch.setattr(GradeProgram, "shade", broken)
        with pytest.raises(ContextLostError):
            engine.render(ParameterSet())
        with pytest.raises(InitializationError):
            engine.render(ParameterSet())


class TestProgram:
    """Test the tensor building blocks."""

    def test_rasterize_pixel_centers(self):
        """Test the quad interpolates to pixel-center coordinates, v down."""
        positions = torch.tensor(((-1.0, -1.0), (1.0, -1.0), (-1.0, 1.0), (1.0, 1.0)))
        texcoords = torch.tensor(((0.0, 1.0), (1.0, 1.0), (0.0, 0.0), (1.0, 0.0)))

        uv = program_module.rasterize_uv(positions, texcoords, width=2, height=2)

        expected = torch.tensor(
            [[[0.25, 0.25], [0.75, 0.25]], [[0.25, 0.75], [0.75, 0.75]]]
        )
        torch.testing.assert_close(uv, expected, atol=1e-6, rtol=0)

    def test_hsl_matches_reference(self):
        """Test tensor HSL conversion agrees with the CPU kernels."""
        rng = np.random.default_rng(42)
        colors = rng.random((1000, 3))
        colors[:3] = [[1.0, 1.0, 0.0], [0.0, 1.0, 1.0], [0.3, 0.3, 0.3]]

        hsl = program_module.rgb_to_hsl(torch.from_numpy(colors))
        np.testing.assert_allclose(hsl.numpy(), rgb_to_hsl(colors), atol=1e-9)

        rgb = program_module.hsl_to_rgb(hsl)
        np.testing.assert_allclose(rgb.numpy(), colors, atol=1e-9)

    def test_clamp_maps_nan_to_zero(self):
        """Test the clamp used by the program."""
        x = torch.tensor([float("nan"), -1.0, 0.5, 2.0, float("inf")])
        torch.testing.assert_close(program_module.clamp01(x), torch.tensor([0.0, 0.0, 0.5, 1.0, 1.0]))

    @pytest.mark.parametrize(
        "params",
        [
            ParameterSet(exposure=float("nan"), contrast=float("inf"), grain=3.0),
            ParameterSet(flash_strength=1.0, flash_threshold=1e17, background_crush=0.5),
            ParameterSet(flash_strength=0.5, flash_threshold=float("nan")),
        ],
    )
    def test_degenerate_parameters(self, params):
        """Test NaN/inf and collapsed-threshold parameters still produce valid colors."""
        program = GradeProgram(torch.device("cpu"))
        texels = torch.rand((8, 8, 4), generator=torch.Generator().manual_seed(42))
        uv = torch.rand((8, 8, 2), generator=torch.Generator().manual_seed(7))

        program.bind(params)
        out = program.shade(texels, uv, time=1.0)

        assert torch.isfinite(out).all()
        assert out.min() >= 0.0
        assert out.max() <= 1.0
