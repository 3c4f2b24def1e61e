"""Salesforce object catalog: scrape, merge, index and serve object definitions."""

__version__ = '0.1.0'
