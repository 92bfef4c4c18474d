from setuptools import find_packages, setup

setup(
    name="tfs-provisioner",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "pyyaml",
        "azure-identity",
        "aiohttp",
        "tenacity",
        "rich",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "tfsp=tfs_provisioner.cli:main",  # Shorter CLI command
            "tfs-provisioner=tfs_provisioner.cli:main",  # Full name
        ],
    },
    description="Find or create TFS / Azure DevOps team projects and Docker service endpoints",
    author="Christos Galanopoulos",
    author_email="christosgalano@outlook.com",
    url="https://github.com/christosgalano/tfs-provisioner",
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Build Tools",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
)
