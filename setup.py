"""
recordschema

Declarative attribute and schema modeling for key-value table records.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="recordschema",
    version="0.1.0",
    author="recordschema Contributors",
    description="Declarative attribute and schema modeling for key-value table records",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Database",
    ],
    python_requires=">=3.10",
    install_requires=[
        # No external dependencies - stdlib only
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
        ],
    },
)
