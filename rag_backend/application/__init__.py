"""
Application layer.

Use-case services composing the boundary adapters and core components.
"""
