import os
import sys

sys.path.insert(0, os.path.abspath("../../src"))

project = "enrichmeta"
copyright = "2025, the enrichmeta developers"
author = "the enrichmeta developers"
release = "0.3.0"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "myst_parser",
    "sphinx.ext.autosummary",
    "sphinx_click",
]

autosummary_generate = True

autodoc_default_options = {
    "members": True,
    "private-members": False,
    "undoc-members": False,
    "special-members": "__init__",
    "show-inheritance": True,
}

autodoc_member_order = "groupwise"

templates_path = ["_templates"]
exclude_patterns = []

html_theme = "sphinx_rtd_theme"
html_static_path = ["_static"]

autodoc_mock_imports = [
    "igraph",
    "matplotlib",
    "statsmodels",
]
