"""Low-poly generation pipeline with optional stage dumps."""
from pathlib import Path
from typing import Callable, List, Optional, Union
import time
import logging

import numpy as np

from lowpoly.types import (
    PixelBuffer,
    LowPolyConfig,
    LowPolyResult,
    GenerationStats,
    Point,
)
from lowpoly.filters import apply_filters
from lowpoly.edge_detection import extract_edge_points
from lowpoly.sampling import sample_points
from lowpoly.delaunay import Triangulation
from lowpoly.compositor import render_triangles
from lowpoly.raster_ingest import ingest, save_png, to_image
from lowpoly.svg_export import triangles_to_svg, save_svg

logger = logging.getLogger(__name__)

Checkpoint = Callable[[], None]


class LowPolyPipeline:
    """Edge-driven Delaunay triangulation with centroid-sampled flat colors."""

    def __init__(
        self,
        config: Optional[LowPolyConfig] = None,
        save_stages: bool = False,
        stages_dir: Optional[Path] = None
    ):
        """
        Initialize pipeline.

        Args:
            config: Configuration (uses defaults if None)
            save_stages: Whether to save intermediate stage images
            stages_dir: Directory to save stage images (default: ./stages)
        """
        self.config = config or LowPolyConfig()
        self.save_stages = save_stages
        self.stages_dir = Path(stages_dir) if stages_dir else Path('./stages')

        if self.save_stages:
            self.stages_dir.mkdir(parents=True, exist_ok=True)

    def generate(
        self,
        source: PixelBuffer,
        checkpoint: Optional[Checkpoint] = None
    ) -> LowPolyResult:
        """
        Turn a source image into a flat-shaded triangle mesh.

        The source buffer is never modified; filtering runs on a copy and
        colors are sampled from the unfiltered source.

        Args:
            source: RGBA source image
            checkpoint: Called between stages and during triangulation;
                raising from it aborts the run

        Returns:
            LowPolyResult with the rendered image, triangles and stats
        """
        config = self.config
        start_time = time.perf_counter()
        stats = GenerationStats()

        def check():
            if checkpoint is not None:
                checkpoint()

        logger.info(f"Generate start ({source.width}x{source.height})...")

        # Step 1: grayscale, blur, edge enhance
        working = source.copy()
        apply_filters(
            working,
            config.blur_size,
            config.edge_size,
            on_stage=self._on_filter_stage(check),
        )

        # Step 2: edge points
        edge_points = extract_edge_points(working, config.edge_threshold)
        stats.edge_points = len(edge_points)
        check()

        # Step 3: thin them out
        rng = np.random.default_rng(config.seed)
        points = sample_points(edge_points, config.point_rate, config.max_points, rng)
        stats.sampled_points = len(points)

        if self.save_stages:
            self._save_points_overlay(source, points, "stage_04_points.png")
        check()

        # Step 4: triangulate
        triangulation = Triangulation(source.width, source.height)
        inserted = triangulation.insert_all(points, checkpoint=checkpoint)
        stats.skipped_points = len(points) - inserted
        triangles = triangulation.triangles()
        stats.triangles = len(triangles)
        check()

        # Step 5: paint
        image, colors = render_triangles(source, triangles)

        stats.elapsed_seconds = time.perf_counter() - start_time
        logger.info(f"Generate completed {stats.summary()}")

        return LowPolyResult(image=image, triangles=triangles, colors=colors, stats=stats)

    def process(
        self,
        input_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        svg_path: Optional[Union[str, Path]] = None,
        checkpoint: Optional[Checkpoint] = None
    ) -> LowPolyResult:
        """
        Load an image file, generate, and write the results.

        Args:
            input_path: Path to input image
            output_path: Optional path for the rendered PNG
            svg_path: Optional path for an SVG of the triangles
            checkpoint: See generate()

        Returns:
            LowPolyResult
        """
        source = ingest(input_path, pixel_limit=self.config.pixel_limit)
        result = self.generate(source, checkpoint=checkpoint)

        if output_path:
            save_png(result.image, output_path)
            logger.info(f"Saved PNG to: {output_path}")

        if svg_path:
            svg_string = triangles_to_svg(
                result.triangles, result.colors, source.width, source.height
            )
            save_svg(svg_string, svg_path)
            logger.info(f"Saved SVG to: {svg_path}")

        if self.save_stages:
            self._save_stage_image(result.image, "stage_05_lowpoly.png")

        return result

    def _on_filter_stage(self, check: Checkpoint):
        stage_files = {
            "grayscale": "stage_01_grayscale.png",
            "blur": "stage_02_blur.png",
            "edges": "stage_03_edges.png",
        }

        def on_stage(name: str, buffer: PixelBuffer):
            if self.save_stages:
                self._save_luminance(buffer, stage_files[name])
            check()

        return on_stage

    def _save_stage_image(self, buffer: PixelBuffer, filename: str):
        """Save an intermediate stage image."""
        try:
            output_path = self.stages_dir / filename
            save_png(buffer, output_path)
            logger.info(f"Saved stage: {output_path}")
        except OSError as e:
            logger.warning(f"Failed to save stage {filename}: {e}")

    def _save_luminance(self, buffer: PixelBuffer, filename: str):
        """Save channel 0 as an opaque gray image."""
        gray = buffer.luminance
        rgba = np.dstack([gray, gray, gray, np.full_like(gray, 255)])
        self._save_stage_image(PixelBuffer(rgba), filename)

    def _save_points_overlay(self, source: PixelBuffer, points: List[Point], filename: str):
        """Save the sampled points drawn over a dimmed source image."""
        from PIL import ImageDraw

        img = to_image(source).convert('RGB')
        img = img.point(lambda v: v // 3)
        draw = ImageDraw.Draw(img)
        for p in points:
            draw.point((p.x, p.y), fill=(255, 64, 64))

        try:
            output_path = self.stages_dir / filename
            img.save(output_path)
            logger.info(f"Saved stage: {output_path}")
        except OSError as e:
            logger.warning(f"Failed to save stage {filename}: {e}")


def generate(
    source: PixelBuffer,
    config: Optional[LowPolyConfig] = None
) -> LowPolyResult:
    """
    Generate a low-poly rendering of a pixel buffer.

    Convenience function for one-off processing.

    Example:
        >>> result = generate(buffer, LowPolyConfig(seed=1))
        >>> result.stats.triangles
    """
    return LowPolyPipeline(config).generate(source)


def process_image(
    image_path: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
    config: Optional[LowPolyConfig] = None,
    svg_path: Optional[Union[str, Path]] = None
) -> LowPolyResult:
    """
    Process an image file through the low-poly pipeline.

    Example:
        >>> result = process_image("input.jpg", "output.png")
    """
    return LowPolyPipeline(config).process(image_path, output_path, svg_path=svg_path)
