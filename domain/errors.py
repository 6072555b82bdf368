# storefront/domain/errors.py


class ConfigurationError(RuntimeError):
    """A required external service identifier or credential is missing."""


class CatalogError(RuntimeError):
    """The product catalog service could not be read."""


class SheetWriteError(RuntimeError):
    """A spreadsheet call failed or timed out."""


class CheckoutError(ValueError):
    """The submitted cart cannot be turned into an order."""
