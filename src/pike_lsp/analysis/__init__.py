"""
Host-language analysis: tokens, locations and occurrence positions.
"""
