"""Asset Calendar - recurring events and asset inspection scheduling."""

__version__ = "1.0.0"
__author__ = "Asset Tracker Team"
__description__ = "Recurring-event expansion, inspection scheduling and calendar export"

# Package metadata
__all__ = [
    "__author__",
    "__description__",
    "__version__",
]
