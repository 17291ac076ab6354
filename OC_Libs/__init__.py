"""
OC_Libs - Open Canvas Library Modules

This package contains the project archive pipeline for Open Canvas,
organized into specialized sub-packages:

- ArchiveLib: Document model, canonical serialization, hashing, assets and export
- ImportLib: Parsing, legacy migration, validation, planning and import orchestration
- StoreLib: Persistence collaborators (in-memory and file-backed project stores)
"""

__version__ = "0.1.0"
