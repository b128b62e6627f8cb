"""Setup script for duochat."""

from setuptools import setup, find_packages


requires = [
    "attrs>=19.1.0",
    "blinker>=1.4",
    "click>=8.0",
    "colorlog>=2.6.0",
    "python-dotenv>=0.10.3",
    "trio>=0.23.0",
    "trio-util>=0.8.0",
]

__version__ = None
exec(open("src/duochat/version.py").read())

setup(
    name="duochat",
    version=__version__,
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=requires,
    extras_require={"test": ["pytest>=7.0", "pytest-trio>=0.8.0"]},
    setup_requires=[],
    entry_points={"console_scripts": ["duochat = duochat.launcher:start"]},
)
