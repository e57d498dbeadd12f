from setuptools import setup, find_namespace_packages

setup(
    name="shelfmate",
    version="0.1.0",
    packages=find_namespace_packages(include=['cli*', 'core*', 'api*']),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "Click",
        "SQLAlchemy>=2.0",
        "fastapi",
        "pydantic>=2",
        "uvicorn",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
    entry_points={
        "console_scripts": [
            "shelfmate=cli.main:main",
            "shelfmate-api=api.main:run",
        ],
    },
)
