from pathlib import Path

from setuptools import find_packages, setup


def read_requirements(path: str) -> list[str]:
    with (Path(__file__).parent / path).open() as requirements_file:
        return [line.strip() for line in requirements_file if line.strip() and not line.startswith("#")]


setup(
    name="hours_proxy",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    include_package_data=True,
    install_requires=read_requirements("requirements.txt"),
    extras_require={"test": read_requirements("requirements-test.txt")},
    python_requires=">=3.11",
)
