"""Errors raised while preparing images for marker decoding."""


class InvalidImage(ValueError):
    """The source bytes cannot be decoded, or report no usable dimensions."""


class InvalidRegion(ValueError):
    """A crop rectangle falls outside the image it is applied to."""
