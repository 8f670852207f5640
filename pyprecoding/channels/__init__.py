#!/usr/bin/env python
"""
Package with the channel related modules: the multi-cell channel
container, path loss models, antenna gain models and receiver noise.
"""

__all__ = ['multiuser', 'pathloss', 'antennagain', 'noise']
