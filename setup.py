from setuptools import setup, find_packages

# Core dependencies (always required)
install_requires = [
    "pyodbc>=5.0.0,<6.0.0",
    "python-dotenv>=1.0.0,<2.0.0",
    "PyYAML>=6.0,<7.0",
]

# Optional dependencies
extras_require = {
    "snowflake": ["snowflake-connector-python>=3.0.0,<5.0.0"],
    "test": ["pytest>=7.0"],
    "all": ["snowflake-connector-python>=3.0.0,<5.0.0"],  # Install all optional drivers
}

setup(
    name="odbcdsn",
    version="0.1.0",
    description="ODBC and Snowflake connection string builder with key-pair credential routing",
    packages=find_packages(exclude=["odbcdsn.tests", "odbcdsn.tests.*"]),
    include_package_data=True,
    package_data={
        'odbcdsn.connection': [
            'driver_map.json',
        ],
    },
    install_requires=install_requires,
    extras_require=extras_require,
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
