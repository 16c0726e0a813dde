from setuptools import setup, find_packages

setup(
    name="bracketeer",
    version="0.1.0",
    description="Shortcode-style bracket tags for Python text processing",
    author="LynnColeArt",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    python_requires=">=3.11",
    install_requires=[],
    extras_require={
        "dev": ["pytest", "black", "mypy"],
        "examples": ["flask"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Text Processing :: Markup",
    ],
)
