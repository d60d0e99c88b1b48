"""
Symbol trees for the host document and their merge with embedded RXML.
"""
