"""Version information for cowsh."""

MAJOR = 0
MINOR = 1
PATCH = 0
BUILD = None

STRING = ".".join(str(part) for part in (MAJOR, MINOR, PATCH, BUILD) if part is not None)
