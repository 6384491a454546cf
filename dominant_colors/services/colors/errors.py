"""Error kinds raised by the dominant colors pipeline."""


class DominantColorsError(Exception):
    """Base class for dominant color extraction errors."""
    pass


class InvalidConfiguration(DominantColorsError, ValueError):
    """A configuration parameter is outside its documented valid range."""
    pass


class EmptyCluster(DominantColorsError, RuntimeError):
    """A cluster with zero total weight reached the representative picker."""
    pass
