"""
Services behind the HTTP layer.
"""
