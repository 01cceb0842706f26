# Sphinx configuration for the pymlm API reference.

import os
import sys

sys.path.insert(0, os.path.abspath('..'))

import pymlm  # noqa: E402

project = 'pymlm'
copyright = '2026, SGCX'
author = 'SGCX'
release = pymlm.__version__
version = '.'.join(release.split('.')[:2])

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.mathjax',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
]

# Docstrings are Google style throughout
napoleon_google_docstrings = True
napoleon_numpy_docstrings = False

autodoc_member_order = 'bysource'
autodoc_typehints = 'description'
autodoc_default_options = {
    'members': True,
    'show-inheritance': True,
}

exclude_patterns = ['_build', 'DESIGN.md', 'SPEC_FULL.md', 'spec.md']

html_theme = 'furo'
html_title = f'pymlm {release}'
html_theme_options = {
    'light_css_variables': {'color-brand-primary': '#27ae60'},
    'dark_css_variables': {'color-brand-primary': '#2ecc71'},
}

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'numpy': ('https://numpy.org/doc/stable/', None),
    'scipy': ('https://docs.scipy.org/doc/scipy/', None),
}
