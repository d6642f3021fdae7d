"""depenforcer - dependency convergence and policy checks for resolved dependency graphs."""

__version__ = "1.0.0"
