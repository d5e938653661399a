"""
Cache package.

- Content keys (keys.py): hashing a logical key into its storage address
- Metadata store (metadata.py): SQLite-backed expiration records via aiosqlite
- Blob store (blobs.py): one file per content key, atomic writes
- Decoders (base.py): the interface for turning cached files into assets
- Engine (engine.py): the coordinated save/load/sweep operations
"""
