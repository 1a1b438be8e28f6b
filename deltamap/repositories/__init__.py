"""Repository interface and the metadata-driven implementation.

This package defines the abstract repository contract used by application
code and :class:`~deltamap.repositories.repository.Repository`, the engine
translating entities to adapter rows and back.
"""
