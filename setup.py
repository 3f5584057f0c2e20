"""
Setup script for valkompass.

Valkompass is a terminal voting-advice application: an AI service writes
the statements, the user answers them one at a time, and the finished
questionnaire is analyzed into party matches and a political profile.

The 'valkompass' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="valkompass",
    version="1.0.0",
    description="AI-generated voting advice application for the terminal",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.5.0",
        "pydantic-settings>=2.0.0",
        # AI
        "google-generativeai>=0.5.0",
        "google-api-core>=2.11.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "valkompass=valkompass.cli.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Natural Language :: Swedish",
    ],
    keywords="election voting-advice cli questionnaire gemini",
)
