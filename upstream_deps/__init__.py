"""List released versions of several projects and describe their source artifacts."""

__version__ = "0.1.0"