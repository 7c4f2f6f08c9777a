"""EMI collection service: customer loan records and EMI payments."""

__version__ = "1.0.0"
