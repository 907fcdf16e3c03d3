"""anitrack - local episodic media catalog with watch progress tracking."""

__version__ = "0.1.0"
