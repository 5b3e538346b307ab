"""
Top-level package for the document browser.

This package exposes the crossfilter engine and its coordination layer.
Most code should import from submodules such as:
    doc_browser.core
    doc_browser.views
    doc_browser.config
"""

__all__: list[str] = []
