# domain/errors.py


class InvalidArgument(ValueError):
    """Missing or malformed vehicle / preferences input."""
    pass
