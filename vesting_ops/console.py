import sys

_verbose = False


def set_verbose(enabled):
    global _verbose
    _verbose = bool(enabled)


def verbose(*a, **kw):
    if _verbose:
        print(*a, **kw)


def green(s):
    return f"\x1b[32;1m{s}\x1b[0m"


def red(s):
    return f"\x1b[31;1m{s}\x1b[0m"


def link(url, text):
    return f"\x1b]8;;{url}\x1b\\{text}\x1b]8;;\x1b\\"


def warn(*a):
    print(*a, file=sys.stderr)


def fail(msg):
    print(red(msg), file=sys.stderr)
