"""Bibliographic interchange layer.

Parsers and serializers for RIS, BibTeX, CSV and CSL-JSON reference data,
a canonical reference model, and import/export orchestration against an
external record store.
"""

__version__ = "0.1.0"
