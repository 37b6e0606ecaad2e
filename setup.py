#!/usr/bin/env python
"""Setup script for the WebSocket to TCP/TLS line proxy."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding='utf-8')

setup(
    name="wsproxy",
    version="0.1.0",
    author="wsproxy contributors",
    description="WebSocket proxy that relays line-delimited text to TCP and TLS backends",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where=".", include=["src*", "config*"]),
    package_dir={"": "."},
    python_requires=">=3.10",
    install_requires=[
        # Client-facing channel
        "websockets>=14.0",

        # Admin HTTP surface
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",

        # Configuration
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",

        # Logging
        "structlog>=23.0.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "pytest-timeout>=2.1.0",
            "httpx>=0.24.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.4.0",
            "isort>=5.12.0",
        ],
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "pytest-timeout>=2.1.0",
            "httpx>=0.24.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "wsproxy=src.wsproxy.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: Proxy Servers",
        "Topic :: System :: Networking",
    ],
    keywords="websocket proxy tcp tls bridge",
)
