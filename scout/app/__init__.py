"""
Scout HTTP application (FastAPI).
"""
