"""
Gesture Transfer

A demo currency-transfer backend with mock authentication, a static bank and
currency catalog, mocked transfer history and a hand/face gesture
verification flow.
"""

__version__ = "1.0.0"
