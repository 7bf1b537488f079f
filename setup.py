#!/usr/bin/env python3
"""
Signed URLs
Tamper-evident, time-bounded download URLs for digital-goods storefronts
"""

from setuptools import setup, find_packages

requirements = [
    "cryptography>=41.0.0",
    "requests>=2.28.0",
    "urllib3>=1.26.0",
    "keyring>=24.0.0",
]

dev_requirements = [
    "pytest>=7.0.0",
    "pytest-cov>=4.0.0",
    "flake8>=6.0.0",
    "mypy>=1.0.0",
]

setup(
    name="signed-urls",
    version="0.1.0",
    author="Signed URLs Team",
    description="Signed, tamper-evident download URLs for storefront file delivery",
    long_description=(
        "Generates and verifies download URLs whose query parameters are bound "
        "to a keyed digest, optionally tied to the requesting client's address "
        "and user agent."
    ),
    long_description_content_type="text/plain",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security :: Cryptography",
        "Topic :: Internet :: WWW/HTTP",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "dev": dev_requirements,
        "test": ["pytest>=7.0.0", "pytest-cov>=4.0.0"],
    },
    keywords=[
        "signed-urls",
        "downloads",
        "hmac",
        "ecommerce",
        "security",
    ],
    entry_points={
        "console_scripts": [
            "signed-urls=signed_urls.cli:main",
        ],
    },
)
