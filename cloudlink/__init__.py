"""cloudlink — account identity resolution for remote-service clients."""

__version__ = "0.1.0"
