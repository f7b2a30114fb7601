from setuptools import setup, find_packages
setup(
    name="property_intel",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages("src"),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "httpx",
        "fastapi",
        "pydantic",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'property_intel=property_intel.__main__:_safe_main'
        ]
    }
)
