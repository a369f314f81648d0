"""
bondex: bonding-curve primary market (collateral <-> issued asset).
"""

__version__ = "0.1.0"
