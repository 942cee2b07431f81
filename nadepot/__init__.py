"""NADepot: browser for NAD-RNA sequencing datasets."""

from nadepot.errors import CatalogError, ConfigError, NADepotError

__version__ = "1.0.0"

__all__ = ["CatalogError", "ConfigError", "NADepotError", "__version__"]
