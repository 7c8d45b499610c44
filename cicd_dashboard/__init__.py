"""CI/CD build dashboard: latest build per repository, kept fresh by polling."""

__version__ = "0.1.0"
