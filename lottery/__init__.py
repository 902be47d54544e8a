"""Winner selection and prize bookkeeping for event prize draws."""

__version__ = "0.1.0"
