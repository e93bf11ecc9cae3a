from setuptools import setup, find_packages

setup(
    name="opportunity-board",
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*", "alembic"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy",
        "psycopg2-binary",
        "python-jose[cryptography]",
        "passlib[bcrypt]",
        # passlib 1.7 cannot load bcrypt 5 backends
        "bcrypt<5",
        "pydantic[email]",
        "pydantic-settings",
        "python-dotenv",
        "alembic",
        "httpx",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
