#!/usr/bin/env python
"""Package with general utility modules (unit conversion, random draws and
serialization).
"""

__all__ = ['conversion', 'misc', 'serialize']
