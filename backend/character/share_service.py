"""
Share codec for characters

A share token is the character as compact JSON, compressed with zlib and
encoded as URL-safe base64 without padding. Tokens built for sharing leave
out descriptions, death saves and temporary HP; the importing side restores
them from its own copy.
"""

import base64
import binascii
import json
import zlib
from typing import Optional, Union

from loguru import logger
from pydantic import ValidationError

from .models import Character, ChoiceValue

COMPRESSION_LEVEL = 9


def strip_for_sharing(character: Character) -> Character:
    """Copy of the character without the values a share token omits"""
    stripped = character.model_copy(deep=True)

    stripped.combat.death_save_successes = 0
    stripped.combat.death_save_failures = 0
    stripped.combat.hp_temp = 0

    for feature in stripped.features:
        feature.description = ''
    for trait in stripped.racial_traits:
        trait.description = ''

    for data in stripped.feature_data.values():
        for field in data.fields:
            field.description = ''
            if isinstance(field.value, ChoiceValue):
                for option in field.value.options:
                    option.description = ''
        if data.spells is not None:
            for spell in data.spells.spells:
                spell.description = ''

    return stripped


def _to_compact_json(character: Character) -> bytes:
    return json.dumps(character.model_dump(mode='json'), separators=(',', ':')).encode('utf-8')


def encode_character(character: Character) -> str:
    """Encode a character as a URL-safe token"""
    raw = _to_compact_json(character)
    compressed = zlib.compress(raw, COMPRESSION_LEVEL)
    token = base64.urlsafe_b64encode(compressed).rstrip(b'=').decode('ascii')
    logger.debug(f"Encoded character: bytes={len(raw)}, compressed={len(compressed)}, encoded={len(token)}")
    return token


def decode_character(token: str) -> Optional[Character]:
    """
    Decode a token produced by encode_character

    Returns:
        The character, or None if the token is malformed in any way
    """
    try:
        data = token.strip().encode('ascii')
        padded = data + b'=' * (-len(data) % 4)
        compressed = base64.b64decode(padded, altchars=b'-_', validate=True)
        payload = json.loads(zlib.decompress(compressed).decode('utf-8'))
        return Character.model_validate(payload)
    except (binascii.Error, zlib.error, UnicodeError, ValueError, AttributeError) as e:
        # ValidationError is a ValueError
        logger.warning(f"Rejected share token: {type(e).__name__}: {e}")
        return None


def share_token(character: Character) -> str:
    return encode_character(strip_for_sharing(character))


def export_json(character: Character, indent: Optional[int] = 2) -> str:
    """Full character as JSON for file-based transfer"""
    return character.model_dump_json(indent=indent)


def import_json(text: Union[str, bytes], keep_id: Optional[Character] = None) -> Optional[Character]:
    """
    Parse a character exported with export_json

    Args:
        text: JSON document
        keep_id: Sheet being overwritten; its id is kept on the result

    Returns:
        The character, or None if the document is not a valid character
    """
    try:
        character = Character.model_validate_json(text)
    except ValidationError as e:
        logger.warning(f"Rejected character JSON: {e}")
        return None
    if keep_id is not None:
        character.id = keep_id.id
    return character
