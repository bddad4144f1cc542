# Configuration file for the Sphinx documentation builder.
#
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys
from pathlib import Path

ROOT_PATH = Path(os.path.dirname(os.path.realpath(__file__))).parents[0]
VERSION_MODULE_PATH = os.path.join(ROOT_PATH, "fibqueue", "version.py")

sys.path.insert(0, str(ROOT_PATH))


def get_version_string():
    attrs = {}
    with open(VERSION_MODULE_PATH) as f:
        exec(f.read(), attrs)
    return f"v{attrs['VERSION_STRING']}"


# -- Project information -----------------------------------------------------

project = 'fibqueue'
copyright = '2022, the fibqueue developers'
author = 'the fibqueue developers'

release = get_version_string()
version = release


# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.intersphinx',
    'sphinx.ext.doctest',
    'sphinx_rtd_theme',
]

templates_path = ['_templates']
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']


# -- Options for HTML output -------------------------------------------------

html_theme = 'sphinx_rtd_theme'

html_theme_options = {
    'collapse_navigation': True,
    'sticky_navigation': True,
    'navigation_depth': 4,
    'titles_only': False
}


def skip(app, what, name, obj, would_skip, options):
    if name == "__init__":
        return False
    return would_skip


def setup(app):
    app.connect("autodoc-skip-member", skip)


intersphinx_mapping = {'python': ('https://docs.python.org/3', None)}
napoleon_include_private_with_doc = True
napoleon_include_special_with_doc = True
