"""Line parser.

Turns one raw input line into a Command of Args. Escapes inside bare words
are kept raw here and interpreted by the expansion stage, so an escaped glob
metacharacter can still be told apart from a live one.
"""
