"""Audio duration measurement with ffprobe and a size-based estimate."""

import asyncio
import logging
import math
from pathlib import Path

logger = logging.getLogger(__name__)

# 128 kbps MP3
ESTIMATED_BYTES_PER_SECOND = 16 * 1024

PROBE_TIMEOUT_SECONDS = 10.0


def estimate_duration(path: Path) -> float:
    """Estimate duration from file size. Never raises."""
    try:
        size = Path(path).stat().st_size
    except OSError as e:
        logger.warning(f"Cannot stat {path} for duration estimate: {e}")
        return 0.0
    return size / ESTIMATED_BYTES_PER_SECOND


async def probe_duration(
    path: Path,
    ffprobe: str = "ffprobe",
    timeout: float = PROBE_TIMEOUT_SECONDS,
) -> float:
    """Measure audio duration in seconds.

    Runs ffprobe on the file. If ffprobe is missing, fails, times out or
    prints something that is not a duration, falls back to
    estimate_duration().

    Args:
        path: Audio file to measure
        ffprobe: ffprobe executable name or path
        timeout: Seconds to wait for ffprobe

    Returns:
        Duration in seconds
    """
    cmd = [
        ffprobe,
        "-v",
        "error",
        "-show_entries",
        "format=duration",
        "-of",
        "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
        )
    except OSError as e:
        logger.debug(f"ffprobe unavailable ({e}), estimating duration from size")
        return estimate_duration(path)

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        proc.kill()
        await proc.wait()
        logger.warning(f"ffprobe timed out after {timeout}s on {path}, estimating")
        return estimate_duration(path)

    if proc.returncode != 0:
        logger.warning(
            f"ffprobe failed with code {proc.returncode}: {stderr.decode(errors='replace').strip()}"
        )
        return estimate_duration(path)

    try:
        duration = float(stdout.decode().strip())
    except ValueError:
        logger.warning(f"ffprobe returned no duration for {path}, estimating")
        return estimate_duration(path)

    if not math.isfinite(duration) or duration < 0:
        return estimate_duration(path)

    return duration
