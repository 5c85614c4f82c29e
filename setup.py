from setuptools import setup, find_packages

import os

install_requires = [
    "colorama",
    "defusedxml",
    "openpyxl",
    "pyyaml",
    "python-dateutil",
    "tqdm",
    "stevedore>1.20.0",
    "tomlkit",
    "typeguard",
]

extras_require = {"test": ["pytest"]}

# Get spdxgraph version from the VERSION file.
version_file = os.path.join(os.path.dirname(__file__), "VERSION")
with open(version_file) as f:
    spdxgraph_version = f.read().strip()

with open(os.path.join(os.path.dirname(__file__), "README.md")) as f:
    long_description = f.read()

setup(
    name="spdxgraph",
    version=spdxgraph_version,
    license="Apache-2.0",
    description="SPDX 2.x document model with tag-value, JSON, YAML, RDF"
    " and spreadsheet codecs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Software Development :: Libraries",
    ],
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"spdxgraph": ["py.typed"]},
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "spdxgraph.codec": [
            "tag-value = spdxgraph.codec.tagvalue:TagValueCodec",
            "json = spdxgraph.codec.json:JSONCodec",
            "yaml = spdxgraph.codec.yaml:YAMLCodec",
            "rdf = spdxgraph.codec.rdf:RDFCodec",
            "spreadsheet = spdxgraph.codec.spreadsheet:SpreadsheetCodec",
        ],
    },
)
