"""Tests for Renderer class."""

import pytest
import os
import time
import numpy as np

from lumentrace.vec3 import Vec3, Point3, Color, BLACK, WHITE, LIGHT_BLUE
from lumentrace.ray import Ray
from lumentrace.camera import Camera
from lumentrace.shapes import Hittable, Sphere, Scene
from lumentrace.materials import Matte, Metal, Glass
from lumentrace.image import ArraySink
from lumentrace.renderer import Renderer, RenderSettings, RenderCancelled, finalize_pixel


def forward_camera() -> Camera:
    return Camera(
        look_from=Point3(0, 0, 0),
        look_at=Point3(0, 0, -1),
        vup=Vec3(0, 1, 0),
        vfov=90,
        focus_dist=1.0
    )


def single_sphere_scene() -> Scene:
    world = Scene()
    world.add(Sphere(Point3(0, 0, -1), 0.5, Matte(Color(0.5, 0.5, 0.5))))
    return world


def mixed_scene() -> Scene:
    world = Scene()
    world.add(Sphere(Point3(0, -100.5, -1), 100, Matte(Color(0.8, 0.8, 0.0))))
    world.add(Sphere(Point3(0, 0, -1.2), 0.5, Matte(Color(0.1, 0.2, 0.5))))
    world.add(Sphere(Point3(-1, 0, -1), 0.5, Glass(1.5)))
    world.add(Sphere(Point3(1, 0, -1), 0.5, Metal(Color(0.8, 0.6, 0.2), 0.3)))
    return world


class TestRenderSettings:
    """Test RenderSettings configuration."""

    def test_default_values(self):
        settings = RenderSettings()
        assert settings.width == 400
        assert settings.height == 225
        assert settings.samples_per_pixel == 10
        assert settings.max_depth == 10
        assert settings.seed is None
        assert settings.horizon == WHITE
        assert settings.zenith == LIGHT_BLUE

    def test_auto_thread_detection(self):
        settings = RenderSettings(num_threads=0)
        assert settings.num_threads == (os.cpu_count() or 4)

    @pytest.mark.parametrize("kwargs", [
        dict(width=0),
        dict(height=0),
        dict(samples_per_pixel=0),
        dict(max_depth=-1),
        dict(num_threads=-2),
        dict(t_min=0.0),
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            RenderSettings(**kwargs)

    def test_zero_depth_allowed(self):
        assert RenderSettings(max_depth=0).max_depth == 0


class TestRendererConfiguration:
    """Test the configure contract."""

    def test_configured_on_construction(self):
        camera = forward_camera()
        Renderer(RenderSettings(width=4, height=3, num_threads=1), camera)
        assert camera.is_configured
        assert camera.image_width == 4
        assert camera.image_height == 3

    def test_invalid_camera_fails_fast(self):
        camera = forward_camera()
        camera.vfov = 200
        with pytest.raises(ValueError):
            Renderer(RenderSettings(width=4, height=3, num_threads=1), camera)

    def test_reconfigure_after_mutation(self):
        camera = forward_camera()
        renderer = Renderer(RenderSettings(width=4, height=4, num_threads=1), camera)
        before = camera.geometry()

        camera.vfov = 45
        assert np.array_equal(camera.geometry()['pixel00'], before['pixel00'])

        renderer.configure()
        assert not np.array_equal(camera.geometry()['pixel00'], before['pixel00'])

    def test_size_fixed_at_construction(self):
        camera = forward_camera()
        settings = RenderSettings(width=4, height=3, num_threads=1)
        renderer = Renderer(settings, camera)

        settings.width = 9
        settings.height = 7
        renderer.configure()
        image = renderer.render(Scene())

        assert (renderer.width, renderer.height) == (4, 3)
        assert image.shape == (3, 4, 3)
        assert (camera.image_width, camera.image_height) == (4, 3)


class TestRayColor:
    """Test the recursive shading."""

    def test_zero_depth_is_black(self):
        renderer = Renderer(RenderSettings(width=4, height=4, num_threads=1), forward_camera())
        rng = np.random.default_rng(0)

        for scene in (Scene(), single_sphere_scene(), mixed_scene()):
            for direction in (Vec3(0, 0, -1), Vec3(0, 1, 0), Vec3(1, -1, -1)):
                color = renderer.ray_color(Ray(Point3(0, 0, 0), direction), scene, 0, rng)
                assert color == BLACK

    def test_miss_returns_background(self):
        renderer = Renderer(RenderSettings(width=4, height=4, num_threads=1), forward_camera())
        ray = Ray(Point3(0, 0, 0), Vec3(0, 1, 0))
        color = renderer.ray_color(ray, Scene(), 5, np.random.default_rng(0))
        assert color == LIGHT_BLUE

    def test_background_endpoints(self):
        renderer = Renderer(RenderSettings(width=4, height=4, num_threads=1), forward_camera())
        assert renderer.background(Ray(Point3(0, 0, 0), Vec3(0, -3, 0))) == WHITE
        assert renderer.background(Ray(Point3(0, 0, 0), Vec3(0, 3, 0))) == LIGHT_BLUE
        assert renderer.background(Ray(Point3(0, 0, 0), Vec3(1, 0, 0))) == (WHITE + LIGHT_BLUE) * 0.5

    def test_background_is_convex_combination(self):
        renderer = Renderer(RenderSettings(width=4, height=4, num_threads=1), forward_camera())
        rng = np.random.default_rng(8)

        for _ in range(100):
            direction = Vec3.random_unit_vector(rng)
            color = renderer.background(Ray(Point3(0, 0, 0), direction))
            for channel in range(3):
                lo = min(WHITE[channel], LIGHT_BLUE[channel])
                hi = max(WHITE[channel], LIGHT_BLUE[channel])
                assert lo - 1e-12 <= color[channel] <= hi + 1e-12

    def test_custom_gradient(self):
        settings = RenderSettings(width=4, height=4, num_threads=1,
                                  horizon=Color(0, 0, 0), zenith=Color(1, 0, 0))
        renderer = Renderer(settings, forward_camera())
        assert renderer.background(Ray(Point3(0, 0, 0), Vec3(0, 1, 0))) == Color(1, 0, 0)

    def test_absorbed_ray_is_black(self, monkeypatch):
        renderer = Renderer(RenderSettings(width=4, height=4, num_threads=1), forward_camera())
        material = Metal(Color(1, 1, 1))
        monkeypatch.setattr(material, 'scatter', lambda ray_in, hit, rng: None)
        world = Scene([Sphere(Point3(0, 0, -2), 1.0, material)])

        color = renderer.ray_color(Ray(Point3(0, 0, 0), Vec3(0, 0, -1)), world, 5, np.random.default_rng(0))
        assert color == BLACK

    def test_attenuation_multiplies_along_path(self):
        renderer = Renderer(RenderSettings(width=4, height=4, num_threads=1), forward_camera())
        # Mirror facing the camera bounces the ray straight back into the sky
        world = Scene([Sphere(Point3(0, 0, -2), 1.0, Metal(Color(0.5, 0.25, 1.0), 0.0))])
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))

        color = renderer.ray_color(ray, world, 2, np.random.default_rng(0))
        expected = Color(0.5, 0.25, 1.0) * renderer.background(Ray(Point3(0, 0, -1), Vec3(0, 0, 1)))
        assert color == expected


class TestFinalizePixel:
    """Test averaging, gamma correction and clamping."""

    def test_average_and_gamma(self):
        # 4 samples summing to 1.0 average to 0.25, sqrt gives 0.5
        assert finalize_pixel(Color(1.0, 1.0, 1.0), 4) == (127, 127, 127)

    def test_full_white(self):
        assert finalize_pixel(Color(3.0, 3.0, 3.0), 3) == (255, 255, 255)

    def test_clamps_out_of_range(self):
        assert finalize_pixel(Color(50.0, -2.0, 0.0), 1) == (255, 0, 0)

    def test_always_in_byte_range(self):
        rng = np.random.default_rng(17)
        for _ in range(200):
            accumulated = Vec3.random(rng, -5, 20)
            samples = int(rng.integers(1, 16))
            for channel in finalize_pixel(accumulated, samples):
                assert isinstance(channel, int)
                assert 0 <= channel <= 255

    def test_monotonic(self):
        values = np.linspace(0.0, 2.0, 101)
        outputs = [finalize_pixel(Color(v, v, v), 1)[0] for v in values]
        assert all(a <= b for a, b in zip(outputs, outputs[1:]))


class TestRenderEndToEnd:
    """Full renders of small scenes."""

    def test_render_produces_image(self):
        renderer = Renderer(RenderSettings(width=8, height=6, samples_per_pixel=1, max_depth=3, num_threads=1, seed=1),
                            forward_camera())
        image = renderer.render(mixed_scene())

        assert image.shape == (6, 8, 3)
        assert image.dtype == np.uint8

    def test_single_sphere_scenario(self):
        settings = RenderSettings(width=11, height=11, samples_per_pixel=1, max_depth=1, num_threads=1, seed=3)
        renderer = Renderer(settings, forward_camera())
        image = renderer.render(single_sphere_scene())

        # Center ray hits the sphere; depth 1 leaves no bounce budget
        assert tuple(image[5, 5]) == (0, 0, 0)

        top = finalize_pixel(LIGHT_BLUE, 1)
        bottom = finalize_pixel(WHITE, 1)
        for y, x in ((0, 0), (0, 10), (10, 0), (10, 10)):
            corner = tuple(int(c) for c in image[y, x])
            assert corner != (0, 0, 0)
            for channel in range(3):
                assert min(top[channel], bottom[channel]) <= corner[channel] <= max(top[channel], bottom[channel])

        # The upper corners are bluer than the lower ones
        assert image[0, 0, 0] < image[10, 0, 0]

    def test_empty_scene_is_gradient(self):
        settings = RenderSettings(width=5, height=9, samples_per_pixel=2, max_depth=3, num_threads=1, seed=4)
        image = Renderer(settings, forward_camera()).render(Scene())

        # Redder (whiter) towards the bottom of the image
        assert image[0, 2, 0] < image[-1, 2, 0]
        assert np.all(image[:, :, 2] == 255)


class TestRenderDeterminism:
    """Seeded renders are reproducible."""

    def test_same_seed_same_image(self):
        settings = RenderSettings(width=8, height=6, samples_per_pixel=2, max_depth=4, num_threads=1, seed=42)
        first = Renderer(settings, forward_camera()).render(mixed_scene())
        second = Renderer(settings, forward_camera()).render(mixed_scene())
        assert np.array_equal(first, second)

    def test_thread_count_does_not_change_image(self):
        single = RenderSettings(width=8, height=6, samples_per_pixel=2, max_depth=4, num_threads=1, seed=7)
        multi = RenderSettings(width=8, height=6, samples_per_pixel=2, max_depth=4, num_threads=4, seed=7)
        image_single = Renderer(single, forward_camera()).render(mixed_scene())
        image_multi = Renderer(multi, forward_camera()).render(mixed_scene())
        assert np.array_equal(image_single, image_multi)

    def test_geometry_independent_of_seed(self):
        # Depth 1 keeps only geometry: hits are black, misses are background
        a = RenderSettings(width=9, height=9, samples_per_pixel=1, max_depth=1, num_threads=1, seed=1)
        b = RenderSettings(width=9, height=9, samples_per_pixel=1, max_depth=1, num_threads=1, seed=2)
        image_a = Renderer(a, forward_camera()).render(single_sphere_scene())
        image_b = Renderer(b, forward_camera()).render(single_sphere_scene())

        assert tuple(image_a[4, 4]) == tuple(image_b[4, 4]) == (0, 0, 0)
        assert np.all(image_a[0, :, 2] == 255)
        assert np.all(image_b[0, :, 2] == 255)


class TestRenderOutput:
    """Test the sink, progress and cancellation."""

    @pytest.mark.parametrize("threads", [1, 3])
    def test_sink_receives_each_pixel_once(self, threads):
        settings = RenderSettings(width=7, height=5, samples_per_pixel=1, max_depth=2, num_threads=threads, seed=5)
        sink = ArraySink(7, 5)
        image = Renderer(settings, forward_camera()).render(single_sphere_scene(), sink)

        assert sink.is_complete()
        assert np.array_equal(sink.pixels, image)

    @pytest.mark.parametrize("threads", [1, 2])
    def test_progress_callback(self, threads):
        settings = RenderSettings(width=4, height=6, samples_per_pixel=1, max_depth=1, num_threads=threads)
        renderer = Renderer(settings, forward_camera())

        progress_values = []
        renderer.set_progress_callback(progress_values.append)
        renderer.render(Scene())

        assert len(progress_values) == 6
        assert progress_values == sorted(progress_values)
        assert progress_values[-1] == 1.0

    @pytest.mark.parametrize("threads", [1, 2])
    def test_cancel_between_rows(self, threads):
        settings = RenderSettings(width=4, height=40, samples_per_pixel=1, max_depth=1, num_threads=threads)
        renderer = Renderer(settings, forward_camera())
        sink = ArraySink(4, 40)
        renderer.set_progress_callback(lambda progress: renderer.cancel())

        with pytest.raises(RenderCancelled):
            renderer.render(Scene(), sink)

        # Only the row that triggered the cancel reached the sink
        assert sink.write_counts.sum() == 4

    def test_render_after_cancel(self):
        settings = RenderSettings(width=4, height=4, samples_per_pixel=1, max_depth=1, num_threads=1)
        renderer = Renderer(settings, forward_camera())
        renderer.cancel()

        image = renderer.render(Scene())
        assert image.shape == (4, 4, 3)

    def test_worker_error_stops_pending_rows(self):
        calls = []

        class FailingScene(Hittable):
            def hit(self, ray, ray_t):
                calls.append(1)
                if len(calls) == 1:
                    raise RuntimeError("broken shape")
                time.sleep(0.01)
                return None

        settings = RenderSettings(width=2, height=40, samples_per_pixel=1, max_depth=1, num_threads=2)
        renderer = Renderer(settings, forward_camera())

        with pytest.raises(RuntimeError, match="broken shape"):
            renderer.render(FailingScene())

        assert len(calls) < 2 * 40
