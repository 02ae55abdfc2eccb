"""Record storage layer.

This package holds the comparison engine, codecs, backends and the
``DataStore`` façade that callers use to add, fetch, search and purge records.
"""
