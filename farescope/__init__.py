"""FareScope - flight search with live price trends"""

__version__ = "1.0.0"
