"""Setup script for the epaper_calendar server."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

# Read requirements, separating test dependencies
requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
dev_requirements = []

if requirements_file.exists():
    for line in requirements_file.read_text().strip().split("\n"):
        line = line.strip()
        # Skip empty lines and comments
        if not line or line.startswith("#"):
            continue

        # Separate development dependencies
        if "pytest" in line:
            dev_requirements.append(line)
        else:
            requirements.append(line)

setup(
    name="epaper-calendar",
    version="0.1.0",
    description="Calendar and weather snapshot server rendering PNG pages for three-colour e-paper panels",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="epaper-calendar contributors",
    # Package configuration
    packages=find_packages(include=["epaper_calendar", "epaper_calendar.*"]),
    include_package_data=True,
    # Dependencies
    install_requires=requirements,
    extras_require={
        "dev": dev_requirements,
        "test": dev_requirements,
    },
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Web Environment",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business :: Scheduling",
        "Topic :: System :: Hardware",
        "Framework :: AsyncIO",
    ],
    keywords="calendar ics e-paper e-ink home-assistant weather raspberry-pi async",
    entry_points={
        "console_scripts": [
            "epaper-calendar=epaper_calendar.__main__:main",
        ],
    },
    zip_safe=False,
    platforms=["linux", "macos"],
)
