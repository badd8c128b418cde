"""narrate - quota-aware, cached text-to-speech generation."""

__version__ = "0.1.0"
__all__ = ["generate"]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name == "generate":
        from .api import generate

        return generate
    raise AttributeError(f"module 'narrate' has no attribute {name!r}")
