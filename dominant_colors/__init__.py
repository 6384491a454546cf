"""
Dominant Colors Service

Extracts a small, ranked set of perceptually distinct dominant colors from
still images for theming and palette features.
"""

__version__ = "1.0.0"
