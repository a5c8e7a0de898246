from setuptools import setup

# All configuration is in pyproject.toml
# This setup.py is kept for backwards compatibility
setup(
    packages=["TM1link", "TM1link.Exceptions", "TM1link.Objects", "TM1link.Services", "TM1link.Utils"],
)
