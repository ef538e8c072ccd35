from setuptools import find_packages, setup

setup(
    name="quarkdrive-fs",
    version="0.1.0",
    description="Path-addressed, lazily cached view of a Quark cloud drive",
    author="Daniel T Sasser II",
    packages=find_packages(),
    install_requires=[
        "cachetools>=5.0.0",
        "requests>=2.31.0",
    ],
    entry_points={
        "console_scripts": [
            "quarkdrive-fs=quarkdrive_fs.__main__:main",
        ],
    },
    python_requires=">=3.10",
    extras_require={
        "dev": [
            "pytest",
            "pytest-asyncio>=0.21",
            "build",
            "twine",
        ],
    },
)
