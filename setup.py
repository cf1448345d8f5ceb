from setuptools import setup, find_packages

setup(
    name="dicom-search",
    version="1.0.0",
    description="Find DICOM files by patient age and sex across a directory tree",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "aiofiles>=23.1",
        "pydicom>=3.0",
        "PyYAML>=6.0",
        "rich>=13.0",
        "tqdm>=4.60",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "dicom-search = dicom_search.cli:main"
        ],
    },
)
