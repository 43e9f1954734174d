# =======================================================================================
# gatepass/__init__.py - Package Initialization
# =======================================================================================
"""
Gatepass - access credentials for gated communities

Residents issue time-boxed QR / manual-code passes for themselves and their
guests; guards validate them at the gate and every attempt is logged.
"""

__version__ = "1.0.0"
__author__ = "Gatepass Team"
