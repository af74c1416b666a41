"""
ddlgen - SQL Server schema validation and DDL generator
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="ddlgen",
    version="1.0.0",
    author="Diegoproggramer",
    author_email="",
    description="Validate database schema definitions and generate SQL Server DDL",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/Diegoproggramer/ddlgen",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Code Generators",
        "Topic :: Database",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=23.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ddlgen=ddlgen.cli:main",
        ],
    },
    keywords="mssql, sql-server, ddl, schema, validation, code-generator",
    project_urls={
        "Bug Reports": "https://github.com/Diegoproggramer/ddlgen/issues",
        "Source": "https://github.com/Diegoproggramer/ddlgen",
    },
)
