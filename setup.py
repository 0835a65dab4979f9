from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="tella",
    version="0.1.19",
    author="tella contributors",
    description="Turn natural language into a single shell command using Cerebras, Ollama or Gemini",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Environment :: Console",
        "Topic :: Utilities",
    ],
    python_requires=">=3.8",
    install_requires=[
        "google-generativeai>=0.5.0",
        "google-api-core>=2.0.0",
        "python-dotenv>=1.0.0",
        "requests>=2.28.0",
        "rich>=12.0.0",
        "toml>=0.10.2",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "tella=tella.main:main",
        ],
    },
)
