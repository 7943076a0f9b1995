"""Batch image transfer client.

Every eligible image in a directory is sent to every configured transform
server over a small length-prefixed TCP protocol; the transformed artifact
comes back on the same connection and is written to the output directory.

- framing and the wire exchange live in ``frame`` / ``codec``
- ``retry`` is a socket-free state machine, ``session`` wires it to the codec
- ``dispatcher`` fans out one session per (image, server) pair
"""

__version__ = "0.1.0"

__all__ = []
