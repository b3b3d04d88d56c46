#!/usr/bin/env python3
"""
KV-Store Setup Script
=====================
Allows installation of the kv-store package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # Development install with test tools
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="kv-store-http",
    version="1.0.0",
    packages=find_packages(include=["kvstore", "kvstore.*"]),
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.100",
        "uvicorn>=0.29",
        "pydantic>=2.0",
        "httpx>=0.24",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "kv-store=kvstore.server:main",
        ],
    },
)
