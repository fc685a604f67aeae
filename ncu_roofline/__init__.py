"""Roofline analysis of Nsight Compute kernel exports."""

__version__ = "0.1.0"
