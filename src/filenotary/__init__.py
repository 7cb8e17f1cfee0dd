"""
File notary: registers uploaded reports and source archives under a
content-derived key and exports them for the administrator.
"""

__version__ = "0.1.0"
