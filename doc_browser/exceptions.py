

class DocBrowserError(Exception):
    """Base exception for all doc_browser errors"""
    pass

class ConfigError(DocBrowserError):
    """Invalid or inconsistent browser config"""
    pass

class DatasetSchemaError(DocBrowserError):
    """
    Document payload doesn't match what the Dataset expects
    missing ids, duplicate ids, documents that are not mappings, etc
    """
    pass

class DatasetConfigError(DocBrowserError, ValueError):
    """Dataset file missing or unreadable"""
    pass

class DuplicateDimensionError(DocBrowserError, ValueError):
    """A dimension with the same name is already registered on the index"""
    pass

class UnknownDimensionError(DocBrowserError, KeyError):
    """No dimension registered under the requested name"""
    pass

class InvalidPredicateError(DocBrowserError, ValueError):
    """
    Malformed filter predicate (low > high, missing bound).
    Dimensions catch this and select zero records instead of propagating it
    """
    pass
