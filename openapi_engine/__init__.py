"""
Schema generation and reference resolution engine for OpenAPI documents.
"""
