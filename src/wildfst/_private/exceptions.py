class WildfstError(Exception):
    """Base class for errors raised by wildfst."""


class LabelConfigError(WildfstError, ValueError):
    """Wildcard, epsilon or alphabet label ids are inconsistent with each other."""


class ExpansionLimitError(WildfstError, MemoryError):
    """Staging new arcs ran out of room (or exceeded the caller's limit)."""
    def __init__(self, staged, limit=None):
        self.staged = staged
        self.limit = limit
        if limit is None:
            msg = "Out of memory after staging {} arcs".format(staged)
        else:
            msg = "Staging more than {} arcs is not allowed ({} staged)".format(limit, staged)
        super().__init__(msg)
