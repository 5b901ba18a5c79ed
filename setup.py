"""
Setup script for the cv-assessment project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="cv-assessment",
    version="0.3.0",
    packages=find_packages(include=["cv_assessment", "cv_assessment.*"]),
    py_modules=["version"],
    python_requires=">=3.11",
    install_requires=[
        "python-dotenv>=1.0",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "tenacity>=8.2",
        "langchain-core>=0.3",
        "langchain-openai>=0.2",
        "json-repair>=0.25",
        "pymongo>=4.6",
        "fastapi>=0.110",
        "uvicorn>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
)
