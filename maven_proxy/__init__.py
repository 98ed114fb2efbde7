"""
Maven repository proxy backed by a Git repository.

This package is responsible for:
* Resolving virtual Maven paths into release/snapshot namespaces.
* Listing, reading and writing files through the GitHub contents API.
* Serving the result over HTTP with FastAPI.
"""
