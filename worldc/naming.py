"""
Identifier naming.

Turns display names ("Sealed Grounds - Spiral", "Goddess's Harp") into the
UpperCamelCase identifiers used for generated enumeration members, and keeps
one registry per namespace so that two different source keys can never end
up with the same identifier.
"""

import keyword
import re
from typing import Dict, List, Optional

from .errors import InvalidNameError, NameCollisionError

NAMESPACES = (
    'region', 'stage', 'area', 'location', 'event',
    'exit', 'entrance', 'item', 'requirement',
)

# Acronym before a capitalised word, a capitalised or lowercase word, or a
# run of capitals/digits.
WORD_RE = re.compile(r'[A-Z0-9]+(?=[A-Z][a-z])|[A-Z]?[a-z0-9]+|[A-Z0-9]+')


def split_words(text: str) -> List[str]:
    """Split text on non-alphanumerics and lower-to-upper case boundaries."""
    return WORD_RE.findall(text.replace("'", ""))


def to_identifier(text: str) -> str:
    """
    Convert a display name to an UpperCamelCase identifier.

    Apostrophes are dropped, every word is capitalised, a leading digit gets
    an underscore prefix and Python keywords get a trailing underscore.
    """
    identifier = ''.join(word[:1].upper() + word[1:].lower() for word in split_words(text))
    if not identifier:
        raise InvalidNameError(text)
    if identifier[0].isdigit():
        identifier = '_' + identifier
    if keyword.iskeyword(identifier):
        identifier += '_'
    return identifier


def area_identifier(stage: str, area: str) -> str:
    return f"{to_identifier(stage)}_{to_identifier(area)}"


def location_identifier(region: str, location: str) -> str:
    return f"{to_identifier(region)}_{to_identifier(location)}"


def logic_exit_identifier(from_area_identifier: str, to_area: str) -> str:
    """Requirement key of a logic edge, e.g. Skyloft_Bazaar_To_Plaza."""
    return f"{from_area_identifier}_To_{to_identifier(to_area)}"


def connection_suffix(disambiguation: Optional[str], door: Optional[str]) -> str:
    """Display suffix: ' (North)', ' (Left Door)', ' (North Left Door)'."""
    parts = []
    if disambiguation:
        parts.append(disambiguation)
    if door:
        parts.append(f"{door} Door")
    if not parts:
        return ""
    return f" ({' '.join(parts)})"


def connection_identifier_suffix(disambiguation: Optional[str], door: Optional[str]) -> str:
    suffix = ""
    if disambiguation:
        suffix += f"_{to_identifier(disambiguation)}"
    if door:
        suffix += f"_{to_identifier(door)}Door"
    return suffix


def exit_identifier(stage: str, area: str, to_stage: str,
                    disambiguation: Optional[str] = None, door: Optional[str] = None) -> str:
    """
    Exit key, e.g. Skyloft_Plaza_Exit_To_Sky_NearDoor.

    The Exit infix keeps exit keys apart from logic edge keys.
    """
    return (f"{area_identifier(stage, area)}_Exit_To_{to_identifier(to_stage)}"
            f"{connection_identifier_suffix(disambiguation, door)}")


def exit_display_name(stage: str, area: str, to_stage: str,
                      disambiguation: Optional[str] = None, door: Optional[str] = None) -> str:
    return f"{stage} - {area} to {to_stage}{connection_suffix(disambiguation, door)}"


def entrance_identifier(to_stage: str, from_stage: str,
                        disambiguation: Optional[str] = None, door: Optional[str] = None) -> str:
    return (f"{to_identifier(to_stage)}_From_{to_identifier(from_stage)}"
            f"{connection_identifier_suffix(disambiguation, door)}")


def entrance_display_name(to_stage: str, from_stage: str,
                          disambiguation: Optional[str] = None, door: Optional[str] = None) -> str:
    return f"{to_stage} from {from_stage}{connection_suffix(disambiguation, door)}"


class Namer:
    """Per-namespace identifier registry."""

    def __init__(self):
        # namespace -> identifier -> source key
        self.owners: Dict[str, Dict[str, str]] = {ns: {} for ns in NAMESPACES}
        # namespace -> source key -> identifier
        self.assigned: Dict[str, Dict[str, str]] = {ns: {} for ns in NAMESPACES}

    def register(self, namespace: str, key: str, identifier: Optional[str] = None) -> str:
        """
        Assign an identifier to a source key.

        Registering the same key twice returns the same identifier. Two
        different keys with one identifier raise NameCollisionError.
        """
        if namespace not in self.owners:
            raise KeyError(f"Unknown namespace: {namespace}")
        if identifier is None:
            identifier = to_identifier(key)

        owners = self.owners[namespace]
        previous = self.assigned[namespace].get(key)
        if previous is not None and previous != identifier:
            raise InvalidNameError(key, f"is already named {previous} in the {namespace} namespace")
        owner = owners.get(identifier)
        if owner is not None and owner != key:
            raise NameCollisionError(namespace, identifier, owner, key)

        owners[identifier] = key
        self.assigned[namespace][key] = identifier
        return identifier

    def lookup(self, namespace: str, key: str) -> Optional[str]:
        return self.assigned[namespace].get(key)

    def owner(self, namespace: str, identifier: str) -> Optional[str]:
        return self.owners[namespace].get(identifier)

    def identifiers(self, namespace: str) -> List[str]:
        """Identifiers of a namespace in registration order."""
        return list(self.owners[namespace])
