from setuptools import setup, find_packages

with open("requirements.txt") as f:
    required = f.read().splitlines()

setup(
    name="discord-archiver",
    version="0.1.0",
    packages=find_packages("src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=required,
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["discord-archiver = discord_archiver.cli:main"]},
    description="Interactive Discord guild message archiver",
)
