"""Setup configuration for the Furnish catalog browsing package."""

from setuptools import setup, find_namespace_packages

setup(
    name="furnish-catalog",
    version="1.0.0",
    description="Faceted filtering, sorting and paginated loading for a furniture catalog",
    author="Alex",
    author_email="",
    packages=find_namespace_packages(include=["src", "src.*", "config", "config.*", "scripts"]),
    python_requires=">=3.11",
    install_requires=[
        "duckdb>=1.0.0",
        "pandas>=2.1.0",
        "httpx>=0.26.0",
        "python-dotenv>=1.0.0",
        "tenacity>=8.2.0",
    ],
    extras_require={
        "dev": [
            "pytest>=8.0.0",
            "pytest-cov>=4.1.0",
            "black>=24.1.0",
            "ruff>=0.2.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "furnish-load=scripts.load_catalog:main",
        ],
    },
)
