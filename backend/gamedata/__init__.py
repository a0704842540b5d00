# Gamedata module
# Submodules should be imported directly:
#   from gamedata.models import ClassDefinition
#   from gamedata.levels import resolve_at_level
#   from gamedata.services.rules_registry import RulesRegistry
