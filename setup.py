from setuptools import setup, find_packages

setup(
    name="blockstore",
    version="1.0.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.9",
    install_requires=[
        "PyYAML",
        "blake3",
        "multiformats",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
