"""Upload element production for batchup.

This module turns a list of local files into upload elements, one per pull:
each element carries the open file, an optional validated thumbnail, the
resolved destination peer and thread, and the run-wide photo/remove flags.

Any failure (routing, peer resolution, thumbnail, file system) stops the
whole run; nothing is skipped or retried.
"""
