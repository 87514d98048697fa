class RegionMapperError(Exception):
    """Base class for errors raised by the region mapper."""


class InventoryNotFoundError(RegionMapperError, FileNotFoundError):
    """The inventory summary file does not exist; nothing can be reconciled."""

    def __init__(self, path):
        self.path = str(path)
        super().__init__(f"Inventory summary file not found: {self.path}")


class CredentialError(RegionMapperError):
    """No usable Azure credential or subscription."""


class CatalogFetchError(RegionMapperError):
    """A catalog request failed. Importers skip the affected region or listing."""

    def __init__(self, path: str, status_code=None, detail: str = ""):
        self.path = path
        self.status_code = status_code
        msg = f"GET {path} failed"
        if status_code is not None:
            msg += f" with HTTP {status_code}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
