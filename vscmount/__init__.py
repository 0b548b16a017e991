"""VSCMount - mount Volume Shadow Copies as browsable directory links."""

__version__ = "1.0.0"
