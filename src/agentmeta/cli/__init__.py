from .cli import cli, __version__

__all__ = [
    "cli",
    "__version__",
]
