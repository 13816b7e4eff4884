from setuptools import setup, find_packages

setup(
    name="spatial_weights",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.20.0",
        "scipy>=1.6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=2.10",
            "black>=21.0",
            "flake8>=3.8",
        ],
    },
    python_requires=">=3.8",
    description="CSR spatial weights matrices and spatial autocorrelation statistics",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
)
