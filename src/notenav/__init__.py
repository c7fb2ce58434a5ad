"""
notenav - Sidebar and hierarchy resolution for dot-delimited note collections.

This package turns a flat snapshot of hierarchical notes (``a.b.c`` style
names) into a validated, ordered navigation sidebar, a renderable tree menu,
and plain parent/child trees that can be compared for structural equality.

All operations are synchronous and recompute from the snapshot they are given.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("notenav")
except PackageNotFoundError:
    __version__ = "0.3.0"
