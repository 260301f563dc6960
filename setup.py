import codecs
import os
import re
from setuptools import setup, find_namespace_packages

def read(rel_path):
    """Read file."""
    here = os.path.abspath(os.path.dirname(__file__))
    with codecs.open(os.path.join(here, rel_path), 'r', 'utf-8') as fp:
        return fp.read()

def find_version(rel_path):
    """Get version from __init__.py file."""
    init_file = read(rel_path)
    pattern = r'^__version__\s*=\s*"((?:[1-9]\d*!)?\d+(?:\.\d+)*(?:[-._]?(?:a|alpha|b|beta|rc|pre|preview)(?:[-._]?\d+)?)?(?:\.post(?:0|[1-9]\d*))?(?:\.dev(?:0|[1-9]\d*))?(?:\+[a-z0-9]+(?:[._-][a-z0-9]+)*)?)"$'
    version_match = re.search(pattern, init_file, re.M)
    if version_match:
        return version_match.group(1)
    raise RuntimeError("Unable to find version string.")

setup(
    name="rhosocial_sphinxql",
    version=find_version("src/rhosocial/sphinxql/__init__.py"),
    description="Minimal SphinxQL / MySQL-protocol connection and result decoding layer",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=['rhosocial.sphinxql', 'rhosocial.sphinxql.*']),
    python_requires=">=3.8",
    install_requires=[
        "PyMySQL>=1.1.0",
        "cryptography>=42.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "coverage>=7.0.0",
            "PyYAML>=6.0",
            "tomli>=2.0.0; python_version < '3.11'",
        ],
        "dev": [
            "black>=23.0.0",
            "isort>=5.0.0",
            "mypy>=1.0.0",
            "ruff>=0.1.0",
        ],
        "docs": [
            "sphinx>=7.0.0",
            "sphinx-rtd-theme>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "sphinxql=rhosocial.sphinxql.__main__:main",
        ],
    },
)
