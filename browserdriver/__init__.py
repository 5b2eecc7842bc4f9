"""
browserdriver - helper facade over Playwright for end-to-end browser tests.
"""
__version__ = "0.3.1"
