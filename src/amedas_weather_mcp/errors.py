"""Errors raised by the AMeDAS loaders.

All three are terminal for the call that raised them; nothing here retries.
"""


class LoadError(Exception):
    """Base class for failures while loading AMeDAS data"""


class WrongURL(LoadError):
    """The request target could not be built"""


class HTTPError(LoadError):
    """Transport failure or non-success status"""


class ParseError(LoadError):
    """The response body did not have the expected shape"""
