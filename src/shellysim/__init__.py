"""Shelly device protocol simulator.

An in-process HTTP server that emulates legacy and current generation
device control planes so clients can be tested without hardware.
"""

__version__ = "0.1.0"
