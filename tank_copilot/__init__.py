"""Tank Copilot - consumption analytics and predictive refill engine."""

__version__ = "1.0.0"
