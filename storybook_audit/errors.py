class AuditError(Exception):
    """Base class for failures that abort a catalog sweep."""


class CatalogNotFoundError(AuditError):
    pass


class EmptyCatalogError(AuditError):
    """No entry could be selected after loading the explorer."""


class ContentFrameNotFoundError(AuditError):
    """The host page has no frame rendering the selected entry."""


class SelectionLostError(AuditError):
    """The explorer tree reported no selected node once traversal had begun."""


class AuditTimeoutError(AuditError):
    """axe-core never reported back on the console channel."""
