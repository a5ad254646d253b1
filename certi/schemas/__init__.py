"""
Request/Response Schemas
"""
