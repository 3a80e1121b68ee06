from setuptools import setup, find_packages

setup(
    name='farmhand',
    version='0.1',
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "requests",
        "pydantic>=2",
        "python-dotenv",
    ],
    extras_require={
        "test": ["pytest"],
    },
    author='Danyang Chen, Chenyu Li',
    description='farmhand: unattended automation agent for a farming-simulation game backend',
)
