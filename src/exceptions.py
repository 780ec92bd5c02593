class MalformedInputError(ValueError):
    """Raised when a boundary or emissions input cannot be used for the merge."""

    pass
