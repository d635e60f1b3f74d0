class InvalidInputError(ValueError):
    """Raised when a pixel buffer cannot be analysed (wrong shape, smaller than 3x3)."""
