"""
Setup script for the Procedural Deadline Engine
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="prazo-engine",
    version="1.0.0",
    author="Legal Tech Solutions",
    author_email="support@legal-processor.com",
    description="Brazilian procedural deadline computation with a replayable audit trail",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/legal-tech/prazo-engine",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Legal Industry",
        "Natural Language :: Portuguese (Brazilian)",
        "License :: Other/Proprietary License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.5.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "prazo-engine=prazo_engine.pipeline.main_pipeline:main",
        ],
    },
    include_package_data=True,
    package_data={
        "prazo_engine": ["data/*.json"],
    },
)
