from typing import Sequence


class DecodeError(ValueError):
    """
    Model output cannot be interpreted as a YOLO detection tensor.
    """

    def __init__(self, message: str, shape: Sequence[int]):
        super().__init__(message)
        self.shape = tuple(shape)


class UnsupportedShape(DecodeError):
    """Rank is not 3, batch is not 1, or a dimension is not positive."""


class TooFewFeatures(DecodeError):
    """Feature axis cannot hold 4 box values plus at least one class score."""
