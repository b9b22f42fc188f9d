import re

import setuptools

with open("pyenvoy/__init__.py", "r") as fh:
    version_tuple = re.search(r"^version_tuple = \((\d+), (\d+), (\d+)\)", fh.read(), re.M).groups()

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="pyenvoy",
    version=".".join(version_tuple),
    description="Python module to collect Enphase Envoy telemetry as InfluxDB line protocol",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=["pyenvoy.tests", "pyenvoy.tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        'requests',
        'urllib3',
        'python-dotenv',
        'python-dateutil',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'pyenvoy=pyenvoy.__main__:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
