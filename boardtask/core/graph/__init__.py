"""In-memory project graph: ordering, progress and editing.

Nothing here performs I/O; callers load a snapshot of nodes and edges and
persist whatever comes back.
"""
