"""
Setup script for the afs_restore package.
"""

from setuptools import setup, find_packages

setup(
    name="afs_restore",
    version="0.1.0",
    description="Interactive restore assistant for Azure file shares protected by Azure Backup",
    author="Shubham Singh",
    author_email="shubh2014shiv@gmail.com",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pydantic>=2.0.0,<3.0.0",
        "pydantic-settings>=2.0.0",
        "pydantic-yaml>=1.1.0",
        "pyyaml>=6.0",
        "tenacity>=8.3.0",  # Job and operation status polling (stop_before_delay)
        "azure-core>=1.29.0",
        "azure-identity>=1.15.0",
        "azure-mgmt-core>=1.4.0",
        "azure-mgmt-recoveryservices>=2.5.0",
        "azure-mgmt-recoveryservicesbackup>=9.0.0,<10.0.0",
        "azure-mgmt-resource>=23.0.0,<24.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "mypy>=1.0.0",
            "flake8>=6.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "afs-restore=afs_restore.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
)
