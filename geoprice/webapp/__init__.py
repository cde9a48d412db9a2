"""
Web application for geoprice.
"""
