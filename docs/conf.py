"""Sphinx configuration for the Travel Bucket List API documentation.

Build with ``sphinx-build -b html docs docs/_build``.
"""

import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.abspath(".."))

project = "Travel Bucket List API"
copyright = f"{datetime.now().year}, Bucket List"
author = "Bucket List Team"
release = "0.1.0"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
]

autodoc_member_order = "bysource"
autodoc_typehints = "description"
napoleon_google_docstring = True
napoleon_numpy_docstring = False

exclude_patterns: list[str] = ["_build"]

html_theme = "alabaster"
html_title = "Travel Bucket List API"
