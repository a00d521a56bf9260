"""Type codes and framing constants for Yak messages.

Keep these in one place to avoid stringly-typed message handling.
"""

# Message type codes.
COMMAND = "X"
RESULT = "R"
ERROR = "E"

# Framing bytes.
SEPARATOR = b":"
NEWLINE = b"\n"

# Smallest possible header: type, separator, one digit, newline.
HEADER_MINIMUM = 4

# Largest payload length a header may declare; matches a signed 64-bit long.
LENGTH_LIMIT = 2**63 - 1

ENCODING = "utf-8"


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
