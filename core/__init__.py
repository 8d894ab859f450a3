"""Core (HTTP-agnostic) hospital dashboard logic.

This package contains:
- workbook ingestion (XLSX -> pandas) with the remote/local/sample fallback chain
- the in-memory record store and its periodic refresh
- report window normalization
- report compute functions (JSON-serializable payloads)
"""
