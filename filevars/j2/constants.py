"""Jinja2-related constants for FileVars."""

# Template markers for detecting Jinja2 templates - all opening variations
JINJA2_MARKERS = [
    "{{",  # Standard variable output
    "{{-",  # Variable with left whitespace control
    "{%",  # Statement/control structure
    "{%-",  # Statement with left whitespace control
    "{#",  # Comment
    "{#-",  # Comment with left whitespace control
]

# Context names that give templates access to every variable, including
# names that are not valid identifiers (e.g. "/sys/info/hostname")
TEMPLATE_VARS_KEY = "vars"
TEMPLATE_VAR_FUNCTION = "var"

COMPILE_CACHE_SIZE = 256
