"""
Setup script for memorio-adaptive.

Memorio adaptive is the mastery engine behind the memory-training
exercises. It serves three roles:

1. Knowledge tracing - Bayesian belief that each skill is known
2. Review scheduling - SM-2 intervals for when to practice again
3. Difficulty selection - how hard the next exercise should be

The 'memorio' command exposes the same operations from the terminal.
"""

from setuptools import find_packages, setup

setup(
    name="memorio-adaptive",
    version="1.0.0",
    description="Adaptive mastery tracking with Bayesian Knowledge Tracing and SM-2 scheduling",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Memorio",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "memorio=memorio.cli.mastery_cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition knowledge-tracing bkt sm2 education",
)
