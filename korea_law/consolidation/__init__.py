"""
Change detection for statute articles.
"""
