"""sonarcov — Istanbul coverage to SonarQube generic coverage XML."""

__version__ = "0.1.0"
