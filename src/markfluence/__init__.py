"""Markdown to Confluence storage format converter and page sync tool."""

__version__ = "0.1.0"
