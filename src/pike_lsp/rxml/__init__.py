"""
Embedded RXML support: detection, position mapping, symbols and diagnostics.
"""
