class NADepotError(Exception):
    """Base class for errors raised by the browser."""


class ConfigError(NADepotError):
    pass


class CatalogError(NADepotError):
    """Catalog or annotation table is missing or malformed."""
