"""
Friendly names for peers.

Two optional sources feed the public key -> metadata table:

- wg-quick style config files, where a comment in (or directly above) a
  [Peer] block names the peer:

      [Peer]
      # friendly_name = Alice's laptop
      PublicKey = ...
      AllowedIPs = 10.70.0.2/32

  A comment holding a JSON object gives a set of labels instead of a name:

      # friendly_json = {"owner": "alice", "device": "laptop"}

- a JSON file mapping public keys straight to names:

      {"QmF...=": "Router"}

When both name the same peer the JSON mapping wins, but the AllowedIPs seen
in the config file are kept.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Union

from wgexporter.errors import InvalidConfig, InvalidNameMapping, InvalidPeerComment


@dataclass(frozen=True)
class FriendlyName:
    name: str


@dataclass(frozen=True)
class FriendlyLabels:
    labels: Dict[str, str]


PeerMetadata = Union[FriendlyName, FriendlyLabels]


@dataclass(frozen=True)
class PeerEntry:
    public_key: str
    allowed_ips: Optional[str] = None  # as written in the config, for cross-checking only
    metadata: Optional[PeerMetadata] = None


# Labels the renderer emits itself; a friendly_json object may not reuse them
BUILTIN_LABELS = frozenset({
    "interface",
    "public_key",
    "allowed_ips",
    "allowed_ip",
    "friendly_name",
    "remote_ip",
    "remote_port",
})

_LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_HEADER_RE = re.compile(r"^\[([A-Za-z]+)\]$")
_KEYED_COMMENT_RE = re.compile(r"^(friendly_name|friendly_json)\s*=\s*(.*)$")
# A commented-out setting such as "#PersistentKeepalive = 25"
_COMMENTED_SETTING_RE = re.compile(r"^\w+\s*=")


def parse_friendly_comment(
    text: str,
    source: Optional[str] = None,
    public_key: Optional[str] = None,
) -> Optional[PeerMetadata]:
    """Interpret the text of a comment (without the leading '#').

    Anything shaped like a JSON object must be one; everything else is a name.
    """
    text = text.strip()
    if not text:
        return None

    if not text.startswith("{"):
        return FriendlyName(text)

    try:
        labels = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidPeerComment(f"bad JSON: {e}", source, public_key) from None

    if not isinstance(labels, dict):
        raise InvalidPeerComment("JSON comment is not an object", source, public_key)

    for key, value in labels.items():
        if not isinstance(value, str) or not value:
            raise InvalidPeerComment(f"label {key!r} must be a non-empty string", source, public_key)
        if not _LABEL_NAME_RE.match(key):
            raise InvalidPeerComment(f"{key!r} is not a valid label name", source, public_key)
        if key.startswith("__"):
            raise InvalidPeerComment(f"label {key!r} is reserved by Prometheus", source, public_key)
        if key in BUILTIN_LABELS:
            raise InvalidPeerComment(f"label {key!r} clashes with a built-in label", source, public_key)

    if not labels:
        return None
    return FriendlyLabels(dict(labels))


class _Section:

    def __init__(self, name: str, leading_comments: List[str]):
        self.name = name
        self.comments = list(leading_comments)
        self.values: Dict[str, str] = {}


def _split_sections(text: str, source: Optional[str]) -> List[_Section]:
    sections: List[_Section] = []
    current: Optional[_Section] = None
    pending: List[str] = []  # comment run not yet claimed by a section

    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        inline: List[str] = []

        if not line:
            if current is not None:
                current.comments.extend(pending)
            pending = []
            continue

        if line.startswith("#"):
            pending.append(line[1:].strip())
            continue

        # wg and wg-quick drop everything from "#" to the end of the line
        line, hash_sign, trailing = line.partition("#")
        line = line.strip()
        if hash_sign and trailing.strip():
            inline.append(trailing.strip())

        if line.startswith("["):
            match = _HEADER_RE.match(line)
            if not match:
                raise InvalidConfig(f"malformed section header on line {line_number}: {line!r}", source)
            current = _Section(match.group(1), pending + inline)
            sections.append(current)
            pending = []
            continue

        if current is None:
            raise InvalidConfig(f"line {line_number} is outside of any section: {line!r}", source)

        key, sep, value = line.partition("=")
        if not sep or not key.strip():
            raise InvalidConfig(f"expected 'Key = Value' on line {line_number}: {line!r}", source)

        current.comments.extend(pending + inline)
        pending = []
        # wg-quick keys are case-insensitive
        current.values[key.strip().lower()] = value.strip()

    if current is not None:
        current.comments.extend(pending)

    if not sections and text.strip():
        raise InvalidConfig("no [Section] headers found", source)

    return sections


def _peer_metadata(comments: List[str], source: Optional[str], public_key: str) -> Optional[PeerMetadata]:
    free_text = []
    for comment in comments:
        match = _KEYED_COMMENT_RE.match(comment)
        if match:
            kind, value = match.group(1), match.group(2).strip()
            if kind == "friendly_name":
                return FriendlyName(value) if value else None
            if not value.startswith("{"):
                raise InvalidPeerComment("friendly_json must hold a JSON object", source, public_key)
            return parse_friendly_comment(value, source, public_key)
        if comment and not _COMMENTED_SETTING_RE.match(comment):
            free_text.append(comment)

    if free_text:
        return parse_friendly_comment(free_text[0], source, public_key)
    return None


def parse_peer_config(text: str, source: Optional[str] = None) -> Dict[str, PeerEntry]:
    """Collect named peers from one wg-quick config.

    [Peer] blocks without both PublicKey and AllowedIPs are skipped. A public
    key appearing twice is an InvalidConfig error.
    """
    entries: Dict[str, PeerEntry] = {}

    for section in _split_sections(text, source):
        if section.name.lower() != "peer":
            continue

        public_key = section.values.get("publickey")
        allowed_ips = section.values.get("allowedips")
        if not public_key or allowed_ips is None:
            continue

        if public_key in entries:
            raise InvalidConfig(f"peer {public_key} is defined more than once", source)

        entries[public_key] = PeerEntry(
            public_key=public_key,
            allowed_ips=allowed_ips,
            metadata=_peer_metadata(section.comments, source, public_key),
        )

    return entries


def parse_name_mapping(text: str, source: Optional[str] = None) -> Dict[str, str]:
    try:
        names = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidNameMapping(str(e), source) from None

    if not isinstance(names, dict):
        raise InvalidNameMapping(f"top level is a {type(names).__name__}", source)

    for public_key, name in names.items():
        if not isinstance(name, str) or not name:
            raise InvalidNameMapping(f"name for {public_key} is not a non-empty string", source)

    return names


def merge_peer_entries(
    from_config: Optional[Dict[str, PeerEntry]],
    from_mapping: Optional[Dict[str, str]],
) -> Dict[str, PeerEntry]:
    merged: Dict[str, PeerEntry] = dict(from_config or {})

    for public_key, name in (from_mapping or {}).items():
        existing = merged.get(public_key)
        if existing is not None:
            merged[public_key] = replace(existing, metadata=FriendlyName(name))
        else:
            merged[public_key] = PeerEntry(public_key=public_key, metadata=FriendlyName(name))

    return merged


def resolve_peer_metadata(
    config_texts: Optional[Iterable[str]] = None,
    name_mapping_text: Optional[str] = None,
    config_sources: Optional[Sequence[str]] = None,
    mapping_source: Optional[str] = None,
) -> Dict[str, PeerEntry]:
    """Build the public key -> PeerEntry table from whichever sources are configured.

    Each config text is parsed on its own, so a comment at the top of one
    file never names a peer at the bottom of another. ``config_sources``
    names the texts in the same order, for error messages.
    """
    from_config = None
    if config_texts is not None:
        from_config = {}
        for index, text in enumerate(config_texts):
            source = config_sources[index] if config_sources and index < len(config_sources) else None
            for public_key, entry in parse_peer_config(text, source=source).items():
                if public_key in from_config:
                    raise InvalidConfig(f"peer {public_key} is defined more than once", source)
                from_config[public_key] = entry

    from_mapping = None
    if name_mapping_text is not None:
        from_mapping = parse_name_mapping(name_mapping_text, source=mapping_source)

    return merge_peer_entries(from_config, from_mapping)
