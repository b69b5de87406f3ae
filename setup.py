from setuptools import setup, find_packages

setup(
    name="packed-sharing",
    version="1.0.0",
    description="Packed threshold secret sharing. Many secrets per share vector, O(n log n) sharing via finite field FFTs.",
    long_description=open("README.md").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["cli"],
    python_requires=">=3.8",
    install_requires=[],
    extras_require={
        "test": ["pytest>=7.0", "hypothesis>=6.0.0"],
    },
    entry_points={
        "console_scripts": [
            "packed-sharing=cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Security :: Cryptography",
    ],
    license="MIT",
)
