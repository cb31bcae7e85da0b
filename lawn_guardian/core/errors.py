"""
Failure taxonomy for the image intake pipeline.
Both errors are terminal for the call that raised them; nothing retries internally.
"""


class ImageLoadError(ValueError):
    """The supplied data could not be decoded as an image. Ask the user for a new capture."""


class SurfaceUnavailableError(RuntimeError):
    """No rendering/sampling surface could be allocated. Abort the current operation."""
