"""Exceptions raised by enrichmeta."""


class ConfigurationError(ValueError):
    """Raised when an analysis is misconfigured.

    Covers malformed pathway catalogs, unsupported p-value adjustment
    methods, invalid thresholds and unsupported KEGG species codes. These
    are never retried and abort the call before any computation happens.
    """
