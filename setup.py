from setuptools import find_packages, setup

setup(
    name="poplar",
    version="0.1.0",
    description="Remote-method registry with glob-matched before/after hooks and declarative parameter validation",
    packages=find_packages(include=["poplar", "poplar.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "validators>=0.22",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
)
