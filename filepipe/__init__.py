"""Read and write CSV and newline-delimited JSON records in batches."""

__version__ = "0.1.0"