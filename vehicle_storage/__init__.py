"""
Vehicle Storage Engine.

Object-storage lifecycle and garbage collection for per-tenant vehicle
photos and store logos on an S3-compatible bucket.
"""
__version__ = "1.0.0"
