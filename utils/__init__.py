"""
Request validation, handler decorators and exception types.
"""
