"""
Restaurant Guide: browse restaurant reviews stored in an Airtable base.
"""
__version__ = "1.0.0"
