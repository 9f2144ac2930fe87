from setuptools import setup, find_namespace_packages

setup(
    name="table-copy",
    version="0.1",
    packages=find_namespace_packages(include=["tablecopy", "tablecopy.*"]),
    python_requires=">=3.9",
    extras_require={
        "test": ["pytest"],
    },
    install_requires=[
        "loguru",
        "sqlalchemy>=1.4",
        "pymysql",
        "psycopg2-binary",
        "psutil",
    ],
)
