"""
Aerodrome position monitor.

Watches the concentrated liquidity positions of one wallet on Base and
pushes ntfy alerts when a position leaves its tick range, comes back into
range, or is left unstaked.
"""

__version__ = "1.0.0"
