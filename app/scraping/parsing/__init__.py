"""
HTML parsing layer exports.
"""

from app.scraping.parsing.html_parsers import ProfileHTMLParser

__all__ = ["ProfileHTMLParser"]
