"""Setup script for RowFlow."""

from setuptools import find_packages, setup

setup(
    name="rowflow",
    version="0.1.0",
    description="Row-oriented ETL toolkit: relational control-flow tasks and threaded dataflows",
    author="RowFlow Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "sqlalchemy>=2.0.0",  # Connections, inspection, parameter binding
        "pandas>=2.0.0",  # CSV reading
        "networkx>=3.0",  # Pipeline graph validation
        "click>=8.0.0,<8.2.0",  # CLI framework under typer
        "typer>=0.9.0,<0.10.0",  # Modern CLI framework
        "rich>=13.0.0",  # CLI output
        "psycopg2-binary>=2.9.0",  # PostgreSQL driver
        "pyyaml>=6.0",  # Configuration handling
        "typing-extensions>=4.0.0",  # Type hints support
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.1.0",
            "black>=22.1.0",
            "isort>=5.10.1",
            "flake8>=4.0.1",
            "mypy>=1.0.0",  # Type checking
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.1.0",
            "mock>=5.0.0",  # For mocking in tests
        ],
    },
    entry_points={
        "console_scripts": [
            "rowflow=rowflow.cli.main:app",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Database",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
)
