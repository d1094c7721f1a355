"""
wpconf: read and edit WordPress wp-config.php files.

Two halves that never share state:
    - the Config Introspector executes the file and reports what it
      defines at runtime (wpconf.introspector)
    - the Config Transformer edits definitions in the file text while
      leaving every other byte alone (wpconf.transformer)

ARCHITECTURAL GUARANTEE:
------------------------
The transformer never executes the file, and the introspector never
writes to it.
"""

__version__ = "0.1.0"
