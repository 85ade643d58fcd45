"""Tests for display processing, PNG export and the interactive preview.

The interactive tests avoid creating GUI windows; they cover construction,
image upload, parameter handling and stepping the renderer.
"""

import os
import tempfile

import numpy as np
import pytest
from PIL import Image as PILImage


class TestToneMapping:
    """Tests for tone mapping operators."""

    def test_reinhard_formula(self):
        from pathtracer.preview.display import tone_map_reinhard

        image = np.array([[[0.0, 1.0, 3.0]]], dtype=np.float32)
        np.testing.assert_allclose(tone_map_reinhard(image), [[[0.0, 0.5, 0.75]]], rtol=1e-6)

    def test_reinhard_handles_negative_input(self):
        from pathtracer.preview.display import tone_map_reinhard

        image = np.full((2, 2, 3), -1.0, dtype=np.float32)
        assert np.all(tone_map_reinhard(image) == 0.0)

    def test_exposure_formula(self):
        from pathtracer.preview.display import tone_map_exposure

        image = np.array([[[1.0, 1.0, 1.0]]], dtype=np.float32)
        expected = 1.0 - np.exp(-2.0)
        np.testing.assert_allclose(tone_map_exposure(image, 2.0), expected, rtol=1e-6)

    def test_gamma_one_is_identity(self):
        from pathtracer.preview.display import apply_gamma

        image = np.array([[[0.25, 0.5, 0.75]]], dtype=np.float32)
        assert apply_gamma(image, 1.0) is image

    def test_gamma_brightens_midtones(self):
        from pathtracer.preview.display import apply_gamma

        image = np.full((1, 1, 3), 0.5, dtype=np.float32)
        assert np.all(apply_gamma(image, 2.2) > 0.5)


class TestProcessImageForDisplay:
    """Tests for the display pipeline."""

    def test_white_point_scales_to_unit_range(self):
        from pathtracer.preview.display import process_image_for_display

        image = np.array([[[0.0, 127.5, 255.0]]], dtype=np.float32)
        np.testing.assert_allclose(process_image_for_display(image), [[[0.0, 0.5, 1.0]]])

    def test_custom_white_point(self):
        from pathtracer.preview.display import process_image_for_display

        image = np.array([[[0.5, 1.0, 2.0]]], dtype=np.float32)
        result = process_image_for_display(image, white_point=1.0)
        np.testing.assert_allclose(result, [[[0.5, 1.0, 1.0]]])

    def test_output_always_valid(self):
        from pathtracer.preview.display import process_image_for_display

        image = np.array([[[np.nan, np.inf, -5.0], [1e9, 10.0, 0.0]]], dtype=np.float32)
        for tone_map in ("none", "reinhard", "exposure"):
            result = process_image_for_display(image, tone_map=tone_map, gamma=2.2)
            assert np.all(np.isfinite(result))
            assert result.min() >= 0.0
            assert result.max() <= 1.0

    def test_invalid_tone_map_raises(self):
        from pathtracer.preview.display import process_image_for_display

        with pytest.raises(ValueError):
            process_image_for_display(np.zeros((1, 1, 3), dtype=np.float32), tone_map="aces")

    def test_non_positive_white_point_raises(self):
        from pathtracer.preview.display import process_image_for_display

        with pytest.raises(ValueError):
            process_image_for_display(np.zeros((1, 1, 3), dtype=np.float32), white_point=0.0)


class TestMatplotlibPreview:
    """Tests for the Matplotlib figures, drawn off-screen with the Agg backend."""

    @pytest.fixture
    def pyplot(self, monkeypatch):
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        shown = []
        monkeypatch.setattr(plt, "show", lambda block=True: shown.append(block))
        yield plt, shown
        plt.close("all")

    def test_show_preview(self, pyplot, mirror_and_light_scene):
        from pathtracer.camera.pinhole import PinholeCamera, setup_camera
        from pathtracer.core.progressive import ProgressiveRenderer
        from pathtracer.preview.display import show_preview

        plt, shown = pyplot
        setup_camera(PinholeCamera(), 9)
        renderer = ProgressiveRenderer(9, 7, bounces=2)
        renderer.render(2)

        show_preview(renderer, tone_map="reinhard", block=False)

        assert shown == [False]
        ax = plt.gcf().axes[0]
        assert ax.get_title() == "Render Preview - 2 samples, 2 bounces (reinhard)"
        assert ax.images[0].get_array().shape == (7, 9, 3)

    def test_show_comparison_returns_rmse(self, pyplot):
        from pathtracer.preview.display import show_comparison

        plt, shown = pyplot
        a = np.zeros((4, 5, 3), dtype=np.float32)
        b = np.full((4, 5, 3), 51.0, dtype=np.float32)

        rmse = show_comparison(a, b, labels=("dark", "grey"), block=False)

        assert rmse == pytest.approx(0.2, rel=1e-5)
        assert shown == [False]
        titles = [ax.get_title() for ax in plt.gcf().axes]
        assert titles[:2] == ["dark", "grey"]
        assert len(titles) == 3

    def test_show_comparison_shape_mismatch_raises(self, pyplot):
        from pathtracer.preview.display import show_comparison

        with pytest.raises(ValueError):
            show_comparison(np.zeros((2, 2, 3)), np.zeros((3, 2, 3)))


class TestExport:
    """Tests for PNG export helpers."""

    def test_image_to_uint8_matches_clamp_quantization(self):
        from pathtracer.preview.export import image_to_uint8

        image = np.array([[[0.0, 127.5, 255.0], [300.0, -3.0, np.nan]]], dtype=np.float32)
        result = image_to_uint8(image)
        assert result.dtype == np.uint8
        assert result.tolist() == [[[0, 127, 255], [255, 0, 0]]]

    def test_save_png_from_array(self):
        from pathtracer.preview.export import save_png_from_array

        image = np.full((6, 10, 3), 128.0, dtype=np.float32)
        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            filepath = f.name
        try:
            save_png_from_array(image, filepath)
            img = PILImage.open(filepath)
            assert img.size == (10, 6)
            assert img.mode == "RGB"
        finally:
            if os.path.exists(filepath):
                os.remove(filepath)

    def test_save_png_from_renderer(self, mirror_and_light_scene):
        from pathtracer.camera.pinhole import PinholeCamera, setup_camera
        from pathtracer.core.progressive import ProgressiveRenderer
        from pathtracer.preview.export import save_png

        setup_camera(PinholeCamera(), 9)
        renderer = ProgressiveRenderer(9, 7, bounces=2)
        renderer.render(1)

        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            filepath = f.name
        try:
            save_png(renderer, filepath, tone_map="reinhard")
            img = PILImage.open(filepath)
            assert img.size == (9, 7)
        finally:
            if os.path.exists(filepath):
                os.remove(filepath)

    def test_rmse(self):
        from pathtracer.preview.export import compute_rmse

        a = np.zeros((2, 2, 3), dtype=np.float32)
        b = np.full((2, 2, 3), 2.0, dtype=np.float32)
        assert compute_rmse(a, a) == 0.0
        assert compute_rmse(a, b) == pytest.approx(2.0)

    def test_rmse_shape_mismatch_raises(self):
        from pathtracer.preview.export import compute_rmse

        with pytest.raises(ValueError):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((2, 3, 3)))


class TestFitWindow:
    """Tests for aspect-preserving window sizing."""

    def test_shrinks_until_height_fits(self):
        from pathtracer.preview.interactive import ASPECT_16_9, fit_window

        # 1920 -> 1728 gives height 972 > 864, 1536 gives 864 which fits
        assert fit_window(ASPECT_16_9, 1920, 1080) == (1536, 864)

    def test_always_shrinks_at_least_once(self):
        from pathtracer.preview.interactive import ASPECT_4_3, fit_window

        width, height = fit_window(ASPECT_4_3, 1000, 10000)
        assert width == 900
        assert height == 675

    def test_tall_window(self):
        from pathtracer.preview.interactive import ASPECT_4_3, fit_window

        # Height must fit in 480, reached after five shrink steps of 128
        assert fit_window(ASPECT_4_3, 1280, 600) == (640, 480)

    def test_invalid_arguments(self):
        from pathtracer.preview.interactive import fit_window

        with pytest.raises(ValueError):
            fit_window(0.0, 100, 100)


class TestInteractivePreview:
    """Tests for the InteractivePreview class without a window."""

    def test_init_creates_display_field(self):
        from pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(64, 48)
        assert preview.width == 64
        assert preview.height == 48
        # Shape should be (width, height) for Taichi field
        assert preview.display_image.shape == (64, 48)

    def test_init_defers_window_creation(self):
        from pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 32)
        assert preview._window is None
        assert preview._canvas is None
        assert preview._is_initialized is False

    def test_update_image_validates_shape(self):
        from pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 24)
        with pytest.raises(ValueError, match="doesn't match expected"):
            preview.update_image(np.zeros((10, 10, 3), dtype=np.float32))

    def test_update_image_flips_rows(self):
        """Row 0 of the image ends up at the top of the window (largest y)."""
        from pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(2, 3)
        image = np.zeros((3, 2, 3), dtype=np.float32)
        image[0, 1] = 1.0
        preview.update_image(image)

        field = preview.display_image.to_numpy()
        assert field.shape == (2, 3, 3)
        assert np.all(field[1, 2] == 1.0)
        assert field.sum() == pytest.approx(3.0)

    def test_is_display_available_returns_bool(self):
        from pathtracer.preview.interactive import InteractivePreview

        assert isinstance(InteractivePreview.is_display_available(), bool)

    def test_no_renderer_before_first_step(self):
        from pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(16, 16)
        assert preview.get_renderer() is None
        assert preview.get_sample_count() == 0

    def test_step_builds_demo_scene_and_accumulates(self):
        from pathtracer.preview.interactive import InteractivePreview
        from pathtracer.scene.intersection import get_sphere_count

        preview = InteractivePreview(16, 12, bounces=2)
        assert preview.step() == 1
        assert preview.step() == 2
        assert get_sphere_count() == 7
        assert preview.get_renderer().bounces == 2

    def test_step_renders_own_scene_after_another_is_built(self):
        from pathtracer.preview.interactive import InteractivePreview
        from pathtracer.scene.intersection import get_sphere_count
        from pathtracer.scene.manager import SceneManager

        preview = InteractivePreview(16, 12, bounces=2)
        preview.step()
        SceneManager()

        assert preview.step() == 2
        assert get_sphere_count() == 7

    def test_param_change_resets_accumulation(self):
        from pathtracer.preview.interactive import InteractivePreview
        from pathtracer.scene.demo import DemoSceneParams

        preview = InteractivePreview(16, 12)
        preview.step()
        preview.step()

        preview.set_params(DemoSceneParams(light_emission=100.0))
        assert preview.step() == 1

    def test_bounce_change_resets_accumulation(self):
        from pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(16, 12, bounces=4)
        preview.step()
        preview.step()

        preview.set_bounces(1)
        assert preview.step() == 1
        assert preview.get_renderer().bounces == 1

    def test_unchanged_params_keep_accumulating(self):
        from pathtracer.preview.interactive import InteractivePreview
        from pathtracer.scene.demo import DemoSceneParams

        preview = InteractivePreview(16, 12)
        preview.step()
        preview.set_params(DemoSceneParams())
        assert preview.step() == 2

    def test_set_params_deep_copies(self):
        from pathtracer.preview.interactive import InteractivePreview
        from pathtracer.scene.demo import DemoSceneParams

        preview = InteractivePreview(16, 12)
        params = DemoSceneParams(light_emission=10.0)
        preview.set_params(params)
        params.light_emission = 20.0
        assert preview._pending_params.light_emission == 10.0

    def test_negative_bounces_rejected(self):
        from pathtracer.preview.interactive import InteractivePreview

        with pytest.raises(ValueError):
            InteractivePreview(8, 8).set_bounces(-1)
