"""Platform primitives shared by the engine and the scheduling surface:
enums, errors, logging, settings and timestamps."""
