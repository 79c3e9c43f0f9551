#!/usr/bin/env python3
"""
LumenTrace - A Python Ray Tracing Renderer

Main entry point for rendering scenes.
"""

import argparse
import sys
import time
from pathlib import Path

import numpy as np

from lumentrace.vec3 import Vec3, Color, Point3
from lumentrace.camera import Camera
from lumentrace.shapes import Sphere, Scene
from lumentrace.materials import Matte, Metal, Glass
from lumentrace.renderer import Renderer, RenderSettings
from lumentrace.image import save_image


def add_main_spheres(world: Scene) -> None:
    """Add the three large glass, matte and metal spheres."""
    world.add(Sphere(Point3(0, 1, 0), 1.0, Glass(1.5)))
    world.add(Sphere(Point3(-4, 1, 0), 1.0, Matte(Color(0.4, 0.2, 0.1))))
    world.add(Sphere(Point3(4, 1, 0), 1.0, Metal(Color(0.7, 0.6, 0.5), 0.0)))


def create_spheres_scene() -> Scene:
    """Create a small scene: ground plus the three main spheres."""
    world = Scene()
    world.add(Sphere(Point3(0, -1000, 0), 1000, Matte(Color(0.5, 0.5, 0.5))))
    add_main_spheres(world)
    return world


def create_final_scene(rng: np.random.Generator) -> Scene:
    """Create the field of small random spheres around the three main ones."""
    world = Scene()

    ground_material = world.register_material(Matte(Color(0.5, 0.5, 0.5)))
    world.add_object(Sphere(Point3(0, -10000, 0), 10000, world.material(ground_material)))

    for i in range(-15, 11):
        for j in range(-15, 11):
            choose_mat = rng.random()
            center = Point3(i + 0.9 * rng.random(), 0.2, j + 0.9 * rng.random())

            if (center - Point3(4, 0.2, 0)).length() <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = Color.random(rng) * Color.random(rng)
                material = Matte(albedo)
            elif choose_mat < 0.91:
                albedo = Color.random(rng, 0.5, 1)
                material = Metal(albedo, rng.uniform(0, 0.4))
            else:
                material = Glass(1.5)

            world.register_material(material)
            world.add_object(Sphere(center, 0.2, material))

    add_main_spheres(world)
    return world


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='LumenTrace - A Python Ray Tracing Renderer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py --scene spheres --output render.png
  python main.py --width 1280 --height 720 --samples 100 --output hd_render.png
  python main.py --scene final --defocus-angle 0.6 --seed 7
        '''
    )

    parser.add_argument('--width', type=int, default=400, help='Image width (default: 400)')
    parser.add_argument('--height', type=int, default=225, help='Image height (default: 225)')
    parser.add_argument('--samples', type=int, default=10, help='Samples per pixel (default: 10)')
    parser.add_argument('--depth', type=int, default=10, help='Max ray depth (default: 10)')
    parser.add_argument('--threads', type=int, default=0, help='Number of threads (0=auto)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible renders')
    parser.add_argument('--vfov', type=float, default=40.0, help='Vertical field of view in degrees')
    parser.add_argument('--defocus-angle', type=float, default=0.0, help='Defocus angle in degrees (0=off)')
    parser.add_argument('--focus-dist', type=float, default=10.0, help='Focus distance')
    parser.add_argument('--output', type=str, default='output/render.png', help='Output filename')
    parser.add_argument('--scene', type=str, default='spheres', choices=['spheres', 'final'],
                        help='Scene to render (default: spheres)')

    args = parser.parse_args(argv)

    print("=" * 60)
    print("LumenTrace Ray Tracer")
    print("=" * 60)

    try:
        settings = RenderSettings(
            width=args.width,
            height=args.height,
            samples_per_pixel=args.samples,
            max_depth=args.depth,
            num_threads=args.threads,
            seed=args.seed
        )
        camera = Camera(
            look_from=Point3(13, 2, 3),
            look_at=Point3(0, 0, 0),
            vup=Vec3(0, 1, 0),
            vfov=args.vfov,
            defocus_angle=args.defocus_angle,
            focus_dist=args.focus_dist
        )
        renderer = Renderer(settings, camera)
    except ValueError as e:
        print(f"Invalid settings: {e}")
        return 2

    print(f"\nRender Settings:")
    print(f"  Resolution: {settings.width}x{settings.height}")
    print(f"  Samples: {settings.samples_per_pixel}")
    print(f"  Max Depth: {settings.max_depth}")
    print(f"  Threads: {settings.num_threads}")

    print(f"\nCreating scene: {args.scene}")
    if args.scene == 'final':
        world = create_final_scene(np.random.default_rng(args.seed))
    else:
        world = create_spheres_scene()

    print(f"  Objects in scene: {len(world)}")
    print(f"  Materials in scene: {len(world.materials)}")

    last_progress = [0]

    def progress_callback(progress: float):
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '█' * filled + '░' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', flush=True)

    renderer.set_progress_callback(progress_callback)

    print("\nRendering...")
    start_time = time.time()

    image = renderer.render(world)

    elapsed = time.time() - start_time
    print(f"\nRender completed in {elapsed:.2f} seconds")
    print(f"  Rays per second: {(settings.width * settings.height * settings.samples_per_pixel) / elapsed:.0f}")

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    print(f"\nSaving to: {args.output}")
    save_image(image, str(output_path))

    print("\nDone!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
