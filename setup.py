"""Package setup for pkgcache."""

from setuptools import setup, find_packages

setup(
    name="pkgcache",
    version="1.1.0",
    description="FreeBSD 'pkg' cache – mirror the packages you use, and their "
                "dependencies, for offline installation",
    packages=find_packages(include=["pkgcache", "pkgcache.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31.0",
        "urllib3>=2.0.0",
        "colorlog>=6.8.0",
        "tqdm>=4.66.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
    entry_points={
        "console_scripts": [
            "pkgcache=pkgcache.cli:main",
        ],
    },
)
