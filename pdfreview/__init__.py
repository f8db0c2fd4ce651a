"""pdfreview — rectangle-anchored review comments on PDF documents."""

__version__ = "0.3.0"
