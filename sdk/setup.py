"""Setup script for the SoulSync Python SDK"""
from setuptools import find_packages, setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="soulsync-client",
    version="0.1.0",
    author="SoulSync Team",
    description="Python SDK for SoulSync - token lifecycle and quota-gated matching",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["soulsync_client", "soulsync_client.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.11",
    install_requires=[
        "requests>=2.31.0",
    ],
)
