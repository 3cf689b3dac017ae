"""Descriptor splitting and link/tooltip annotation."""

from .annotator import AnnotatedTable, Annotator, annotate
from .descriptor import SplitRule, SplitSpec

__all__ = [
    "AnnotatedTable",
    "Annotator",
    "annotate",
    "SplitRule",
    "SplitSpec",
]
