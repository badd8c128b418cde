"""Per-word subtitle timing derived from narration length."""

import math

from .models import WordTiming

FRAMES_PER_SECOND = 30


def duration_to_frames(duration_seconds: float, fps: int = FRAMES_PER_SECOND) -> int:
    """Convert a duration to a whole number of frames, rounding up."""
    return math.ceil(duration_seconds * fps)


def generate_word_timings(words: list[str], total_frames: int) -> list[WordTiming]:
    """Spread ``total_frames`` evenly across ``words`` in order.

    Boundaries are computed with integer arithmetic so the first word starts
    at frame 0, each word ends where the next begins, and the last word ends
    exactly at ``total_frames``.

    Args:
        words: Words in spoken order
        total_frames: Frame count of the whole narration

    Returns:
        One WordTiming per word (empty if there are no words)

    Raises:
        ValueError: If total_frames is negative
    """
    if total_frames < 0:
        raise ValueError(f"total_frames must be non-negative, got {total_frames}")
    if not words:
        return []

    count = len(words)
    return [
        WordTiming(
            word=word,
            start_frame=index * total_frames // count,
            end_frame=(index + 1) * total_frames // count,
        )
        for index, word in enumerate(words)
    ]


def split_words(text: str) -> list[str]:
    return text.split()
