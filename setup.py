"""Setup configuration for the profile review worker."""

from setuptools import setup, find_packages

setup(
    name="profilereview",
    version="0.1.0",
    description="Automated moderation of user profile photos and bios",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "aiosqlite",
        "PyYAML",
        "python-dotenv",
        "Pillow",
        "pillow-heif",
        "numpy",
        "requests",
        "redis>=5.0.1",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "profilereview=profilereview.main:main",
        ],
    },
)
