"""reslide – erase text from slides and images region by region."""

__version__ = "0.1.0"
