"""Compile a forest of Markdown and Typst notes into a static site.

Sections embed and link one another by slug; the compiler resolves the
embedding graph, numbers nested sections, and writes one HTML page per
section along with ``indexes.json`` and a stylesheet.

Exports
-------
- ``app``: Cyclopts application holding the ``kodama`` subcommands.
- ``main``: Convenience function that invokes the app.

Examples
--------
>>> from kodama import app
>>> app.name[0]
'kodama'
>>> from kodama import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
