"""Video export and on-screen preview of a journey animation."""
from __future__ import annotations

import shutil
import time
from pathlib import Path
from typing import List, Optional, Sequence

import imageio.v2 as imageio

from .canvas import MatplotlibCanvas
from .config import JourneyConfig
from .logging import get_logger
from .sequencer import FrameExactDriver, PhaseTimeline, RealtimeDriver
from .state import RenderSettings, RouteLeg

logger = get_logger(__name__)

FRAME_PATTERN = "frame_{index:05d}.png"


def frame_path(frames_dir: Path, index: int) -> Path:
    return frames_dir / FRAME_PATTERN.format(index=index)


def write_frames(
    driver: FrameExactDriver,
    canvas: MatplotlibCanvas,
    frames_dir: Path,
    resume: bool = False,
) -> List[Path]:
    """Render every frame of ``driver`` to PNG files in ``frames_dir``.

    With ``resume`` set, frames already on disk are replayed through the driver
    to rebuild its state but are not captured again.
    """

    if frames_dir.exists() and not resume:
        shutil.rmtree(frames_dir)
    frames_dir.mkdir(parents=True, exist_ok=True)

    paths: List[Path] = []
    skipped = 0
    for index in range(driver.total_frames):
        path = frame_path(frames_dir, index)
        driver.render_frame(index)
        paths.append(path)
        if resume and path.exists():
            skipped += 1
            continue
        imageio.imwrite(path, canvas.capture())

        if (index + 1) % driver.fps == 0:
            logger.info(
                "Rendered frames",
                frame=index + 1,
                total=driver.total_frames,
                percent=round(100.0 * (index + 1) / driver.total_frames, 1),
            )

    if skipped:
        logger.info("Reused existing frames", frames=skipped)
    return paths


def encode_video(frame_paths: Sequence[Path], output_path: Path, fps: int) -> Path:
    """Encode PNG frames into an H.264 video with the FFMPEG plugin."""

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        writer_ctx = imageio.get_writer(
            output_path,
            fps=fps,
            codec="libx264",
            format="FFMPEG",
            macro_block_size=None,
            quality=8,
        )
    except ImportError as exc:
        raise ImportError(
            "FFMPEG support is required to export videos. Install the "
            "'imageio-ffmpeg' package (for example via 'pip install "
            "imageio-ffmpeg') and try again."
        ) from exc

    with writer_ctx as writer:
        for path in frame_paths:
            writer.append_data(imageio.imread(path))

    logger.info("Encoded video", output=str(output_path), frames=len(frame_paths), fps=fps)
    return output_path


def export_video(
    config: JourneyConfig,
    legs: Sequence[RouteLeg],
    settings: RenderSettings,
    output_path: Optional[Path] = None,
    frames_dir: Optional[Path] = None,
    resume: bool = False,
    keep_frames: bool = False,
) -> Path:
    """Render ``legs`` frame by frame and encode the result."""

    animation = config.animation
    output_path = Path(output_path or config.output_path)
    frames_dir = Path(frames_dir) if frames_dir else output_path.with_name(output_path.stem + "_frames")

    canvas = MatplotlibCanvas(animation.width, animation.height)
    driver = FrameExactDriver(
        legs,
        settings,
        canvas,
        canvas,
        fps=animation.frame_rate,
        timeline=PhaseTimeline.for_route(legs, animation.route_seconds),
    )
    logger.info(
        "Starting export",
        frames=driver.total_frames,
        fps=driver.fps,
        pause_frames=sum(driver.pause_frames),
        frames_dir=str(frames_dir),
        resume=resume,
    )

    try:
        paths = write_frames(driver, canvas, frames_dir, resume=resume)
    finally:
        canvas.close()

    encode_video(paths, output_path, animation.frame_rate)
    if not keep_frames:
        shutil.rmtree(frames_dir)
    return output_path


def preview(config: JourneyConfig, legs: Sequence[RouteLeg], settings: RenderSettings) -> RealtimeDriver:
    """Play the animation in a matplotlib window in real time."""

    import matplotlib.pyplot as plt
    from matplotlib.animation import FuncAnimation

    animation = config.animation
    canvas = MatplotlibCanvas(animation.width, animation.height, interactive=True)
    driver = RealtimeDriver(
        legs,
        settings,
        canvas,
        canvas,
        timeline=PhaseTimeline.for_route(legs, animation.route_seconds),
    )

    def update(_frame: int) -> list:
        if not driver.tick(time.perf_counter()):
            player.event_source.stop()
        return []

    player = FuncAnimation(canvas.figure, update, interval=1000.0 / 60.0, cache_frame_data=False)
    plt.show()
    return driver
