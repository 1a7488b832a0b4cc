from .manifest import mpd_manifest_payload, write_manifest
from .mpd import MpdFormatError, format_mpd, parse_mpd, read_mpd, write_mpd
