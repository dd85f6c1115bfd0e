"""
Double-size rewriting of ESC/POS command streams.

Every `ESC ! n` select-print-mode command is forced to `ESC ! 0x30`
(double width + double height). Runs of 42 dashes are ticket separators
and are copied through untouched. If the resulting stream carries no
`ESC !` command at all, one is prepended so the whole ticket prints in
double size.
"""

ESC = 0x1B
SIZE_COMMAND = 0x21  # '!'
DOUBLE_SIZE = 0x30
DASH = 0x2D
SEPARATOR_LENGTH = 42

DOUBLE_SIZE_COMMAND = bytes((ESC, SIZE_COMMAND, DOUBLE_SIZE))
SEPARATOR = bytes((DASH,)) * SEPARATOR_LENGTH


def has_size_command(data: bytes) -> bool:
    """True if an `ESC !` pair starts anywhere before the last two bytes."""
    for i in range(len(data) - 2):
        if data[i] == ESC and data[i + 1] == SIZE_COMMAND:
            return True
    return False


def rewrite(data: bytes) -> bytes:
    """Return a copy of `data` with every size command forced to double size."""
    out = bytearray()
    n = len(data)
    i = 0

    while i < n:
        # separators win over command detection at the same offset
        if n - i >= SEPARATOR_LENGTH and data[i:i + SEPARATOR_LENGTH] == SEPARATOR:
            out += SEPARATOR
            i += SEPARATOR_LENGTH
            continue

        if n - i >= 3 and data[i] == ESC and data[i + 1] == SIZE_COMMAND:
            out += DOUBLE_SIZE_COMMAND
            i += 3
        else:
            out.append(data[i])
            i += 1

    if not has_size_command(out):
        out[0:0] = DOUBLE_SIZE_COMMAND

    return bytes(out)
