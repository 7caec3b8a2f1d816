#!/usr/bin/env python
"""Setup configuration for Evexia."""

from setuptools import find_packages, setup

setup(
    name="evexia",
    version="0.1.0",
    description="Patient-controlled sharing of medical records with providers",
    packages=find_packages(include=["evexia", "evexia.*"]),
    py_modules=["app"],
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.104.1",
        "uvicorn[standard]>=0.24.0",
        "boto3>=1.29.7",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.0.0",
        "sqlalchemy>=2.0.23",
        "alembic>=1.12.0",
        "psycopg2-binary>=2.9.9",
        "python-jose[cryptography]>=3.3.0",
        "structlog>=23.2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "httpx>=0.25.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "evexia=app:main",
        ],
    },
)
