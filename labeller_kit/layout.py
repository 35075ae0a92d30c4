from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from .errors import TooFewFeatures, UnsupportedShape

BOX_DIMS = 4
MIN_FEATURES = BOX_DIMS + 1


class LayoutKind(str, Enum):
    # [batch, slot, feature]
    SLOT_MAJOR = "slot_major"
    # [batch, feature, slot], e.g. 84 x 8400 for yolov8 exports
    FEATURE_MAJOR = "feature_major"


@dataclass(frozen=True)
class Layout:
    kind: LayoutKind
    num_slots: int
    num_classes: int

    @property
    def num_features(self) -> int:
        return BOX_DIMS + self.num_classes

    @property
    def size(self) -> int:
        return self.num_slots * self.num_features

    def index(self, slot: int, feature: int) -> int:
        """Flat buffer index of `feature` (0..3 box, 4.. class scores) for `slot`."""
        if self.kind is LayoutKind.FEATURE_MAJOR:
            return feature * self.num_slots + slot
        return slot * self.num_features + feature

    def readable_slots(self, buffer_len: int) -> int:
        """
        Number of leading slots whose values all lie inside a buffer of
        `buffer_len` floats. In both layouts the readable slots form a prefix.
        """
        if self.kind is LayoutKind.FEATURE_MAJOR:
            # last class row starts at (num_features - 1) * num_slots
            count = buffer_len - (self.num_features - 1) * self.num_slots
        else:
            count = buffer_len // self.num_features
        return max(0, min(self.num_slots, count))


def resolve_layout(shape: Sequence[int]) -> Layout:
    """
    Decide which output axis holds features and which holds detection slots.

    The smaller of the two trailing axes is the feature axis (box + class
    scores is far shorter than the slot count, e.g. 84 vs 8400). When the
    smaller axis cannot hold a box plus one class score, the exporter's
    [batch, features, slots] order is assumed, so shape[1] must be the one
    that fits (a (1, 5, 2) output is one class over two slots).
    """

    dims = tuple(int(d) for d in shape)
    if len(dims) != 3:
        raise UnsupportedShape(f"Expected output rank 3 (batch, A, B), got shape {dims}.", dims)
    if dims[0] != 1:
        raise UnsupportedShape(f"Batch > 1 is not supported (got shape {dims}). Pass one image at a time.", dims)
    if min(dims) <= 0:
        raise UnsupportedShape(f"Output dimensions must be positive, got shape {dims}.", dims)

    _, a, b = dims
    if a < b:
        kind, features, slots = LayoutKind.FEATURE_MAJOR, a, b
    else:
        kind, features, slots = LayoutKind.SLOT_MAJOR, b, a
        if features < MIN_FEATURES <= a:
            kind, features, slots = LayoutKind.FEATURE_MAJOR, a, b

    if features < MIN_FEATURES:
        raise TooFewFeatures(
            f"Feature axis has {features} values; need {BOX_DIMS} box values plus at least one class (shape {dims}).",
            dims,
        )

    return Layout(kind=kind, num_slots=slots, num_classes=features - BOX_DIMS)
