"""Local entity store, query and statistics core for the personal tracker apps."""

__version__ = "0.1.0"
