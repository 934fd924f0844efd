# pylint: disable=missing-module-docstring
from pathlib import Path

from setuptools import setup, find_packages

with open("requirements.in", encoding="utf-8") as f:
    requirements = f.read().splitlines()

this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    name="topicq",
    version="1.0.0",
    description="topicq pipelines batch workloads through bounded topic queues served by pools "
    "of producer and consumer threads.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="topicq Team",
    license="LGPL-2.1 license",
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=["setuptools"] + requirements,
    extras_require={"dev": ["pytest"]},
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "topicq = topicq.run_topicq:cli",
        ]
    },
)
