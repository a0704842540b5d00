"""
Services module
Persistence services that aren't directly tied to rule application
"""
