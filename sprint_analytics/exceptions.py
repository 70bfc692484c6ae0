"""Runtime exceptions for Sprint Analytics.

Configuration problems are reported with
:class:`sprint_analytics.config.ConfigError`; the exceptions here cover
failures talking to the data provider and the cache.
"""


class FetchFailure(Exception):
    """A mandatory fetch failed and the report cannot be generated.

    Carries the name of the failing fetch and the sprint it was made for.
    The underlying exception is chained as ``__cause__``.
    """

    def __init__(self, fetch, sprint_id, cause=None):
        self.fetch = fetch
        self.sprint_id = sprint_id
        self.cause = cause
        message = f"Failed to fetch {fetch} for sprint {sprint_id}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class CacheUnavailable(Exception):
    """The cache store could not be reached.

    Cache stores raise this; :class:`sprint_analytics.cache.CacheClient`
    treats it as a cache miss.
    """
