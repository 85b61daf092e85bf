from setuptools import setup, find_packages

setup(
    name="connect4-rag",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["run"],
    install_requires=[
        "numpy",
        "torch",
        "openai",
        "filelock",
        "python-dotenv",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
