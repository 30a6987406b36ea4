"""SoulSync match core: token lifecycle and quota-gated compatibility matching"""

__version__ = "0.1.0"
