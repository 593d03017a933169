"""Error types raised by the store and the record fetcher."""


class StoreUnavailable(Exception):
    """The establishment store could not be opened."""


class FetchFailed(Exception):
    """A single establishment's inspection query failed."""


class MalformedResponse(FetchFailed):
    """The inspections API answered with something other than a JSON array of rows."""
