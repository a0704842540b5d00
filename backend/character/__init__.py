# Character module
# Submodules should be imported directly:
#   from character.models import Character
#   from character.factory import create_character_manager
#   from character.diff_service import diff_characters
